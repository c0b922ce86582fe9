from .directive_block import directive_plugin
from .footnote_refs import footnote_ref_plugin

__all__ = ["directive_plugin", "footnote_ref_plugin"]
