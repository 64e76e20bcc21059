from pathlib import Path

import pytest

import odata_gen


def _make_file_result(relative_path: str, line_count: int) -> odata_gen.FileWriteResult:
    return odata_gen.FileWriteResult(
        relative_path=Path(relative_path),
        line_count=line_count,
        byte_count=line_count * 10,
    )


def _make_generation_counts(
    *,
    functions: tuple[int, int, int] = (0, 0, 0),
    actions: tuple[int, int, int] = (0, 0, 0),
) -> odata_gen.GenerationCounts:
    return odata_gen.GenerationCounts(
        schemas=2,
        entity_types=3,
        complex_types=1,
        enum_types=4,
        entity_sets=5,
        functions=odata_gen.OperationCount(*functions),
        actions=odata_gen.OperationCount(*actions),
    )


def _make_generation_summary(
    *,
    counts: odata_gen.GenerationCounts | None = None,
    files: tuple[odata_gen.FileWriteResult, ...] = (),
) -> odata_gen.GenerationSummary:
    return odata_gen.GenerationSummary(
        source_label="trippin.xml",
        output_dir="build",
        counts=_make_generation_counts() if counts is None else counts,
        files=files,
    )


def test_build_generation_counts_from_fixture(trippin_xml: Path) -> None:
    counts = odata_gen.build_generation_counts(odata_gen.parse_metadata(trippin_xml))

    assert counts == odata_gen.GenerationCounts(
        schemas=3,
        entity_types=3,
        complex_types=3,
        enum_types=2,
        entity_sets=2,
        functions=odata_gen.OperationCount(total=3, bound=2, unbound=1),
        actions=odata_gen.OperationCount(total=2, bound=1, unbound=1),
    )


def test_build_generation_counts_empty_metadata() -> None:
    counts = odata_gen.build_generation_counts(odata_gen.ODataMetadata(schemas=()))

    assert counts.schemas == 0
    assert counts.functions == odata_gen.OperationCount(0, 0, 0)


def test_build_generation_counts_rejects_untransformed_operation() -> None:
    stray = odata_gen.XmlUnboundOperation(name="Raw", parameters=None, return_type=None)
    schema = odata_gen.ODataSchema(
        namespace="NS",
        entity_types=(),
        complex_types=(),
        enum_types=(),
        actions=(stray,),  # type: ignore[arg-type]
        functions=(),
        entity_container=None,
    )

    with pytest.raises(AssertionError, match="OperationCount invariant violated"):
        odata_gen.build_generation_counts(odata_gen.ODataMetadata(schemas=(schema,)))


def test_build_generation_summary_joins_input_names(tmp_path: Path) -> None:
    config = odata_gen.GenerateConfig(
        metadata_files=(tmp_path / "a.xml", tmp_path / "sub" / "b.xml"),
        output_dir=tmp_path / "build",
    )
    files = (_make_file_result("index.ts", 3),)
    write_result = odata_gen.PackageWriteResult(output_dir=config.output_dir, files=files)

    summary = odata_gen.build_generation_summary(
        config, odata_gen.ODataMetadata(schemas=()), write_result
    )

    assert summary.source_label == "a.xml, b.xml"
    assert summary.output_dir == str(tmp_path / "build")
    assert summary.files == files


def test_format_generation_summary_layout() -> None:
    summary = _make_generation_summary(
        counts=_make_generation_counts(functions=(3, 2, 1)),
        files=(
            _make_file_result("Constant.ts", 9),
            _make_file_result("Trippin/Models/Models-schema.ts", 1234),
        ),
    )

    text = odata_gen.format_generation_summary(summary)
    lines = text.splitlines()

    assert lines[0] == "TypeScript declarations generated:"
    assert "  Source:     trippin.xml" in lines
    assert "  Output:     build" in lines
    assert "    Schemas:            2" in lines
    assert "    Functions:          3  (2 bound + 1 unbound)" in lines
    assert "    Actions:            0" in lines
    assert "    Constant.ts" + " " * 30 + "     9 lines" in lines
    assert any(
        line.startswith("    Trippin/Models/Models-schema.ts")
        and line.endswith(" 1,234 lines")
        for line in lines
    )
    assert lines[-1] == "  Total: 1,243 lines across 2 files"
    assert text.endswith("\n")
    assert not text.endswith("\n\n")


@pytest.mark.parametrize(
    ("actions", "expected"),
    [
        ((0, 0, 0), "    Actions:            0"),
        ((2, 0, 2), "    Actions:            2  (0 bound + 2 unbound)"),
    ],
)
def test_format_generation_summary_operation_annotations(
    actions: tuple[int, int, int], expected: str
) -> None:
    summary = _make_generation_summary(counts=_make_generation_counts(actions=actions))

    assert expected in odata_gen.format_generation_summary(summary).splitlines()


def test_print_generation_summary_writes_formatted_text(
    capsys: pytest.CaptureFixture[str],
) -> None:
    summary = _make_generation_summary()

    odata_gen.print_generation_summary(summary)

    assert capsys.readouterr().out == odata_gen.format_generation_summary(summary)
