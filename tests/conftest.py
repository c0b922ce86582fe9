import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `import slide_compiler` works
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from slide_compiler.diagnostics import WarningCollector  # noqa: E402
from slide_compiler.markdown_parser import MarkdownParser  # noqa: E402
from slide_compiler.options import CompileOptions, SlideContext  # noqa: E402


@pytest.fixture
def collector():
    return WarningCollector()


@pytest.fixture
def context(collector):
    """Context for compiling a single slide with the default 1920x1080 canvas."""
    return SlideContext(index=0, options=CompileOptions(), warnings=collector)


@pytest.fixture
def parser():
    return MarkdownParser()
