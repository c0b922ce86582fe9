"""
Frontmatter parsing and the global/per-slide configuration cascade.

Configuration is parsed into its wire form (camelCase dicts) so that
resolving a slide is a plain deep merge of two levels: nested objects merge
key by key, scalars and lists are replaced, and the background is replaced
wholesale because its variants are mutually exclusive.
"""
import copy
import logging
import re
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from . import diagnostics
from .colors import normalize_color, parse_gradient
from .links import is_figma_component_url, is_remote_url, parse_figma_url, url_extension
from .options import CompileOptions, as_number
from .transitions import (
    normalize_timing_type,
    normalize_transition_curve,
    normalize_transition_style,
)

logger = logging.getLogger(__name__)

HEADING_LEVELS = ("h1", "h2", "h3", "h4")
TEXT_STYLE_SECTIONS = ("paragraphs", "bullets", "code")
FONT_ROLES = ("h1", "h2", "h3", "h4", "body", "bullets", "code")
SLIDE_NUMBER_POSITIONS = ("bottom-right", "bottom-left", "top-right", "top-left")
COMPONENT_FITS = ("cover", "contain", "stretch")
COMPONENT_ALIGNS = ("center", "top-left", "top-right", "bottom-left", "bottom-right")
HORIZONTAL_ALIGNS = ("left", "center", "right")
VERTICAL_ALIGNS = ("top", "middle", "bottom")

# Keys whose value replaces the inherited one instead of merging into it.
REPLACED_KEYS = frozenset({"background"})

_GLOBAL_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\n(?:(.*?)\n)?---[ \t]*(?:\n|\Z)", re.DOTALL)
_IMPLICIT_KEY_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*:")
_COLOR_LIKE_RE = re.compile(r"^(#[0-9a-fA-F]{3,8}|(rgb|hsl)a?\s*\(.*|[a-zA-Z]+)$")
_GRADIENT_LIKE_RE = re.compile(r"^#?[0-9a-fA-F]{3,8}:\d+%")


class ConfigParser:
    """
    Turns one raw frontmatter mapping into the wire-form configuration.

    Invalid values are dropped and reported through ``warn``; parsing never
    raises on user input.
    """

    def __init__(self, options: CompileOptions, warn):
        self.options = options
        self._warn = warn

    def warn(self, message: str) -> None:
        self._warn(diagnostics.CONFIG, message)

    # -- entry point -------------------------------------------------------

    def parse(self, raw: Mapping[str, Any], *, is_global: bool = False) -> Dict[str, Any]:
        result: Dict[str, Any] = {}

        base_color = None
        if raw.get("color") is not None:
            if isinstance(raw["color"], str):
                base_color = normalize_color(raw["color"])
            else:
                self.warn(f"color must be a string, got {raw['color']!r}")

        background, template_name = self.parse_background(raw.get("background"))
        if background is not None:
            result["background"] = background

        result["styles"] = self.parse_styles(raw, base_color)

        if "slideNumber" in raw:
            slide_number = self.parse_slide_number(raw["slideNumber"])
            if slide_number is not None:
                result["slideNumber"] = slide_number

        if "titlePrefix" in raw:
            title_prefix = raw["titlePrefix"]
            if title_prefix is False or title_prefix is None:
                result["titlePrefix"] = None
            else:
                parsed_prefix = self.parse_title_prefix(title_prefix)
                if parsed_prefix is not None:
                    result["titlePrefix"] = parsed_prefix
        elif template_name is not None:
            defaults = self.options.template_defaults(template_name)
            if defaults and defaults.get("titlePrefix"):
                result["titlePrefix"] = copy.deepcopy(dict(defaults["titlePrefix"]))
            elif defaults is None:
                logger.debug("Template %r is not registered, no default title prefix", template_name)

        align = self._choice(raw, "align", HORIZONTAL_ALIGNS)
        if align is not None:
            result["align"] = align
        valign = self._choice(raw, "valign", VERTICAL_ALIGNS)
        if valign is not None:
            result["valign"] = valign

        if raw.get("transition") is not None:
            transition = self.parse_transition(raw["transition"])
            if transition is not None:
                result["transition"] = transition

        if "cover" in raw:
            if not is_global:
                self.warn("cover is only honoured in the global frontmatter")
            elif isinstance(raw["cover"], bool):
                result["cover"] = raw["cover"]
            else:
                self.warn(f"cover must be true or false, got {raw['cover']!r}")

        return result

    def _choice(self, raw: Mapping[str, Any], key: str, allowed) -> Optional[str]:
        value = raw.get(key)
        if value is None:
            return None
        if value in allowed:
            return value
        self.warn(f"invalid {key} {value!r}, expected one of {', '.join(allowed)}")
        return None

    # -- text styles -------------------------------------------------------

    def parse_font_size(self, value: Any) -> Optional[float]:
        size = as_number(value)
        if size is not None and 1 <= size <= 200:
            return size
        self.warn(f"font size {value!r} is outside 1-200")
        return None

    def parse_text_style(self, style: Any, section: str) -> Optional[Dict[str, Any]]:
        if style is None:
            return None
        if not isinstance(style, dict):
            self.warn(f"{section} must be a mapping")
            return None
        result: Dict[str, Any] = {}
        if style.get("size") is not None:
            size = self.parse_font_size(style["size"])
            if size is not None:
                result["size"] = size
        if style.get("color"):
            result["color"] = normalize_color(str(style["color"]))
        for axis in ("x", "y"):
            if style.get(axis) is not None:
                number = as_number(style[axis])
                if number is None:
                    self.warn(f"{section}.{axis} must be a number")
                else:
                    result[axis] = number
        if style.get("spacing") is not None:
            spacing = as_number(style["spacing"])
            if spacing is not None and spacing >= 0:
                result["spacing"] = spacing
            else:
                self.warn(f"{section}.spacing must be a non-negative number")
        return result or None

    def parse_styles(self, raw: Mapping[str, Any], base_color: Optional[str]) -> Dict[str, Any]:
        def with_base(style: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
            if base_color is None:
                return style
            if style is None:
                return {"color": base_color}
            style.setdefault("color", base_color)
            return style

        headings_raw = raw.get("headings")
        if headings_raw is not None and not isinstance(headings_raw, dict):
            self.warn("headings must be a mapping")
            headings_raw = None
        headings_raw = headings_raw or {}

        styles: Dict[str, Any] = {"headings": {}}
        for level in HEADING_LEVELS:
            style = with_base(self.parse_text_style(headings_raw.get(level), f"headings.{level}"))
            if style is not None:
                styles["headings"][level] = style

        for section in TEXT_STYLE_SECTIONS:
            style = with_base(self.parse_text_style(raw.get(section), section))
            if style is not None:
                styles[section] = style

        fonts = self.parse_fonts(raw.get("fonts"))
        if fonts is not None:
            styles["fonts"] = fonts
        return styles

    def parse_fonts(self, fonts: Any) -> Optional[Dict[str, Any]]:
        if fonts is None:
            return None
        if not isinstance(fonts, dict):
            self.warn("fonts must be a mapping")
            return None
        result: Dict[str, Any] = {}
        for role in FONT_ROLES:
            variant = fonts.get(role)
            if not variant:
                continue
            if isinstance(variant, str):
                result[role] = {"family": variant, "style": "Regular"}
            elif isinstance(variant, dict) and variant.get("family"):
                parsed = {"family": str(variant["family"]), "style": str(variant.get("style") or "Regular")}
                for key in ("bold", "italic", "boldItalic"):
                    if variant.get(key):
                        parsed[key] = str(variant[key])
                result[role] = parsed
            else:
                self.warn(f"fonts.{role} needs a family")
        return result or None

    # -- slide number / title prefix ----------------------------------------

    def parse_slide_number(self, config: Any) -> Optional[Dict[str, Any]]:
        if isinstance(config, bool):
            return {"show": config}
        if not isinstance(config, dict):
            self.warn("slideNumber must be true/false or a mapping")
            return None

        result: Dict[str, Any] = {}
        if isinstance(config.get("show"), bool):
            result["show"] = config["show"]
        if config.get("size") is not None:
            size = as_number(config["size"])
            if size is not None and 1 <= size <= 200:
                result["size"] = size
            else:
                self.warn(f"slideNumber.size {config['size']!r} is outside 1-200")
        if config.get("color"):
            result["color"] = normalize_color(str(config["color"]))
        if config.get("position"):
            if config["position"] in SLIDE_NUMBER_POSITIONS:
                result["position"] = config["position"]
            else:
                self.warn(f"invalid slideNumber.position {config['position']!r}")
        for key in ("paddingX", "paddingY", "offset"):
            if config.get(key) is not None:
                number = as_number(config[key])
                if number is None or isinstance(config[key], str):
                    self.warn(f"slideNumber.{key} must be a number")
                else:
                    result[key] = number
        if isinstance(config.get("format"), str) and config["format"]:
            result["format"] = config["format"]

        link = config.get("link")
        node_id = config.get("nodeId")
        if link or node_id:
            if not node_id and isinstance(link, str):
                node_id = parse_figma_url(link).node_id
            if node_id:
                if link:
                    result["link"] = link
                result["nodeId"] = str(node_id)
            else:
                self.warn(f"slideNumber.link has no node-id: {link}")

        if config.get("startFrom") is not None:
            start_from = as_number(config["startFrom"])
            if start_from is not None and start_from >= 1:
                result["startFrom"] = start_from
            else:
                self.warn("slideNumber.startFrom must be 1 or more")

        return result or None

    def parse_title_prefix(self, config: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(config, dict) or not (config.get("link") or config.get("nodeId")):
            self.warn("titlePrefix needs a link or nodeId, or false to disable it")
            return None
        link = config.get("link")
        node_id = config.get("nodeId")
        if not node_id and isinstance(link, str):
            node_id = parse_figma_url(link).node_id
        if not node_id:
            self.warn(f"titlePrefix.link has no node-id: {link}")
            return None
        result: Dict[str, Any] = {}
        if link:
            result["link"] = link
        result["nodeId"] = str(node_id)
        if config.get("spacing") is not None:
            spacing = as_number(config["spacing"])
            if spacing is None:
                self.warn("titlePrefix.spacing must be a number")
            else:
                result["spacing"] = spacing
        return result

    # -- background ----------------------------------------------------------

    def parse_background(self, config: Any) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """Return ``(background, template_name)``."""
        if not config:
            return None, None

        if isinstance(config, str):
            value = config.strip()
            if is_figma_component_url(value):
                component = self.parse_background_component(value)
                return ({"component": component} if component else None), None
            if _GRADIENT_LIKE_RE.match(value):
                gradient = parse_gradient(value)
                if gradient is not None:
                    return {"gradient": gradient}, None
            if _COLOR_LIKE_RE.match(value):
                return {"solid": normalize_color(value)}, None
            image = self.parse_background_image(value)
            return ({"image": image} if image else None), None

        if not isinstance(config, dict):
            self.warn("background must be a string or a mapping")
            return None, None

        background: Optional[Dict[str, Any]] = None
        template_name: Optional[str] = None
        # template > gradient > color > image
        if config.get("template"):
            template_name = str(config["template"])
            background = {"templateStyle": template_name}
        elif config.get("gradient"):
            gradient = parse_gradient(str(config["gradient"]))
            if gradient is None:
                self.warn(f"invalid background gradient {config['gradient']!r}")
            else:
                background = {"gradient": gradient}
        elif config.get("color"):
            background = {"solid": normalize_color(str(config["color"]))}
        elif config.get("image"):
            image = self.parse_background_image(str(config["image"]))
            if image is not None:
                background = {"image": image}

        if config.get("component"):
            component = self.parse_background_component(config["component"])
            if component is not None:
                background = dict(background or {})
                background["component"] = component

        return background, template_name

    def parse_background_image(self, url: str) -> Optional[Dict[str, Any]]:
        if is_remote_url(url):
            return {"url": url, "source": "remote"}
        extension = url_extension(url)
        if extension not in self.options.image_extensions:
            self.warn(f"unsupported background image format: {url}")
            return None
        return {"url": url, "source": "local"}

    def parse_background_component(self, config: Any) -> Optional[Dict[str, Any]]:
        if isinstance(config, str):
            link, options = config, {}
        elif isinstance(config, dict) and config.get("link"):
            link, options = str(config["link"]), config
        else:
            self.warn("background component requires a link with node-id")
            return None

        parts = parse_figma_url(link)
        if not parts.node_id:
            self.warn(f"background component URL must include node-id: {link}")
            return None

        component: Dict[str, Any] = {"link": link, "nodeId": parts.node_id}
        if parts.file_key:
            component["fileKey"] = parts.file_key

        fit = options.get("fit")
        if fit:
            fit = str(fit).lower()
            if fit in COMPONENT_FITS:
                component["fit"] = fit
            else:
                self.warn(f"invalid background component fit {options['fit']!r}, using cover")
        align = options.get("align")
        if align:
            align = str(align).lower().replace("_", "-")
            if align in COMPONENT_ALIGNS:
                component["align"] = align
            else:
                self.warn(f"invalid background component align {options['align']!r}, using center")
        if options.get("opacity") is not None:
            opacity = as_number(options["opacity"])
            if opacity is not None and 0 <= opacity <= 1:
                component["opacity"] = opacity
            else:
                self.warn(f"background component opacity {options['opacity']!r} must be 0-1")
        return component

    # -- transitions ---------------------------------------------------------

    def parse_transition(self, config: Any) -> Optional[Dict[str, Any]]:
        if isinstance(config, str):
            parts = config.split()
            if not parts:
                return None
            style = normalize_transition_style(parts[0])
            if style is None:
                self.warn(f"unknown transition style {parts[0]!r}")
                return None
            result: Dict[str, Any] = {"style": style}
            if len(parts) > 1:
                duration = as_number(parts[1])
                if duration is not None and 0.01 <= duration <= 10:
                    result["duration"] = duration
                else:
                    self.warn(f"transition duration {parts[1]!r} is outside 0.01-10")
            return result

        if not isinstance(config, dict):
            self.warn("transition must be a string or a mapping")
            return None

        result = {}
        if config.get("style"):
            style = normalize_transition_style(str(config["style"]))
            if style is None:
                self.warn(f"unknown transition style {config['style']!r}")
            else:
                result["style"] = style
        if config.get("duration") is not None:
            duration = as_number(config["duration"])
            if duration is not None and 0.01 <= duration <= 10:
                result["duration"] = duration
            else:
                self.warn(f"transition duration {config['duration']!r} is outside 0.01-10")
        if config.get("curve"):
            curve = normalize_transition_curve(str(config["curve"]))
            if curve is None:
                self.warn(f"unknown transition curve {config['curve']!r}")
            else:
                result["curve"] = curve
        timing = config.get("timing")
        if timing:
            parsed_timing = self.parse_transition_timing(timing)
            if parsed_timing:
                result["timing"] = parsed_timing
        return result or None

    def parse_transition_timing(self, timing: Any) -> Optional[Dict[str, Any]]:
        # the shorthand string form is stored as {"type": ...} so both levels merge
        if isinstance(timing, str):
            timing_type = normalize_timing_type(timing)
            if timing_type is None:
                self.warn(f"unknown transition timing {timing!r}")
                return None
            return {"type": timing_type}
        if not isinstance(timing, dict):
            self.warn("transition.timing must be a string or a mapping")
            return None
        result: Dict[str, Any] = {}
        if timing.get("type"):
            timing_type = normalize_timing_type(str(timing["type"]))
            if timing_type is None:
                self.warn(f"unknown transition timing {timing['type']!r}")
            else:
                result["type"] = timing_type
        if timing.get("delay") is not None:
            delay = as_number(timing["delay"])
            if delay is not None and 0 <= delay <= 30:
                result["delay"] = delay
            else:
                self.warn(f"transition delay {timing['delay']!r} is outside 0-30")
        return result or None


# ---------------------------------------------------------------------------
# Frontmatter extraction and loading
# ---------------------------------------------------------------------------

def extract_global_frontmatter(text: str) -> Tuple[Optional[str], str]:
    """Split a leading ``---`` fenced block off the document."""
    match = _GLOBAL_FRONTMATTER_RE.match(text)
    if not match:
        return None, text
    return match.group(1) or "", text[match.end():]


def split_implicit_frontmatter(text: str) -> Tuple[Optional[str], str]:
    """
    Split ``key: value`` lines closed by ``---`` without an opening fence.

    Only applies when the slide region starts with a YAML-looking key.
    """
    stripped = text.lstrip()
    if stripped.startswith("---") or not _IMPLICIT_KEY_RE.match(stripped):
        return None, text
    lines = stripped.split("\n")
    for index, line in enumerate(lines):
        if line.lstrip().startswith(("```", "~~~")):
            break
        if line.strip() == "---":
            return "\n".join(lines[:index]), "\n".join(lines[index + 1:]).lstrip("\n")
    return None, text


def load_frontmatter(source: str, warn) -> Optional[Dict[str, Any]]:
    """
    Parse a frontmatter block with PyYAML.

    Returns None (and reports a warning) for malformed YAML or a document
    that is not a mapping. An empty block is an empty mapping.
    """
    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f" at line {mark.line + 1}" if mark is not None else ""
        warn(diagnostics.FRONTMATTER, f"malformed frontmatter{where}: {getattr(exc, 'problem', None) or exc}")
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        warn(diagnostics.FRONTMATTER, f"frontmatter must be a mapping, got {type(data).__name__}")
        return None
    return data


# ---------------------------------------------------------------------------
# Cascade
# ---------------------------------------------------------------------------

def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any], replace=frozenset()) -> Dict[str, Any]:
    """
    Merge ``override`` onto ``base`` without mutating either.

    Nested mappings merge key by key; any other value, and any key listed in
    ``replace``, is taken from ``override`` as a whole.
    """
    merged: Dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if key not in replace and isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def resolve_config(global_config: Mapping[str, Any], slide_config: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Resolve one slide's configuration from the two frontmatter levels."""
    if not slide_config:
        return deep_merge(global_config, {})
    override = {key: value for key, value in slide_config.items() if key != "cover"}
    return deep_merge(global_config, override, replace=REPLACED_KEYS)
