from .compiler import SlideCompiler, compile_markdown
from .diagnostics import CompileError, CompileWarning, EmptyDocumentError
from .models import (
    BlockquoteBlock,
    BulletItem,
    BulletsBlock,
    CalloutBlock,
    CodeBlock,
    ColumnsBlock,
    CompileResult,
    Document,
    FigmaBlock,
    FigmaLink,
    FootnoteItem,
    FootnotesBlock,
    HeadingBlock,
    ImageBlock,
    ImagePosition,
    ImageSize,
    ParagraphBlock,
    SlideBlock,
    SlideContent,
    TableBlock,
    TextOverride,
    TextSpan,
)
from .options import CompileOptions

__version__ = "0.1.0"
