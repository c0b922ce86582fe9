from slide_compiler.diagnostics import CompileWarning, WarningCollector


def test_collector_tags_warnings_with_slide():
    collector = WarningCollector()
    collector.warn("config", "outside any slide")
    with collector.for_slide(3):
        collector.warn("image", "bad format")
    assert collector.as_tuple() == (
        CompileWarning("config", "outside any slide"),
        CompileWarning("image", "bad format", slide=3),
    )


def test_warning_formatting():
    warning = CompileWarning("columns", "gap clamped", slide=2)
    assert str(warning) == "[columns] slide 2: gap clamped"
    assert warning.to_dict() == {"code": "columns", "message": "gap clamped", "slide": 2}
    assert str(CompileWarning("frontmatter", "bad yaml")) == "[frontmatter] bad yaml"
