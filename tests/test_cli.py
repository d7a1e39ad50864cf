from click.testing import CliRunner

from geovision.cli import cli

from conftest import write_site


def test_steps_lists_available_steps(site_dir):
    result = CliRunner().invoke(cli, ["steps", str(site_dir)])
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines[0] == "1. Satellite Imagery (satellite)"
    assert lines[-1] == "7. Ore Body Model (oreBody)"
    assert len(lines) == 7


def test_export_writes_one_glb_per_state(site_dir, tmp_path):
    out = tmp_path / "out"
    result = CliRunner().invoke(cli, ["export", str(site_dir), "-o", str(out)])
    assert result.exit_code == 0, result.output
    names = sorted(p.name for p in out.glob("*.glb"))
    assert names == [
        "01_satellite.glb",
        "02_topography.glb",
        "03_geologyMap.glb",
        "04_magneticMap.glb",
        "05_lithologyData_assay.glb",
        "05_lithologyData_lithology.glb",
        "06_assayData_assay.glb",
        "06_assayData_lithology.glb",
        "07_oreBody.glb",
    ]
    assert "Wrote 9 GLB files" in result.output
    assert all(p.read_bytes()[:4] == b"glTF" for p in out.glob("*.glb"))


def test_export_skips_empty_states(tmp_path):
    site = tmp_path / "site"
    site.mkdir()
    write_site(site, layers=("drillholes",))
    (site / "drillholes" / "assay.json").write_text("not json")
    out = tmp_path / "out"
    result = CliRunner().invoke(cli, ["export", str(site), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in out.glob("*.glb")) == ["01_satellite.glb"]
    assert "empty (failed)" in result.output


def test_legend_for_both_modes(site_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["legend", str(site_dir)])
    assert result.exit_code == 0, result.output
    assert "Legend (lithology):" in result.output
    assert "Basalt" in result.output
    assert "Unknown" in result.output

    result = runner.invoke(cli, ["legend", str(site_dir), "-m", "assay"])
    assert result.exit_code == 0, result.output
    assert "0.00" in result.output
    assert "1.00" in result.output
    assert "No grade" not in result.output


def test_legend_without_drillholes_fails(tmp_path):
    write_site(tmp_path, layers=())
    result = CliRunner().invoke(cli, ["legend", str(tmp_path)])
    assert result.exit_code != 0
    assert "No drillhole data" in result.output
