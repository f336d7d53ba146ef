"""
tests/test_cli.py: end-to-end runs of the `warp` command-line entry point.
"""

import numpy as np
import pytest

import warp
from meshwarp.mesh.io import load_mesh, save_mesh


@pytest.fixture
def cli_inputs(cube_mesh, tetra_pairs, tmp_path):
    source = save_mesh(cube_mesh, tmp_path / "cube.obj")
    src_csv = tmp_path / "src.csv"
    dst_csv = tmp_path / "dst.csv"
    src_csv.write_text("".join(f"lm{i},{p.src[0]},{p.src[1]},{p.src[2]}\n" for i, p in enumerate(tetra_pairs)))
    dst_csv.write_text("".join(f"lm{i},{p.dst[0]},{p.dst[1]},{p.dst[2]}\n" for i, p in enumerate(tetra_pairs)))
    return source, src_csv, dst_csv


def _args(source, src_csv, dst_csv, *extra):
    return ["--source", str(source), "--source-landmarks", str(src_csv),
            "--destination-landmarks", str(dst_csv), *extra]


def test_warp_writes_output_mesh(cli_inputs, tmp_path, capsys):
    output = tmp_path / "result" / "warped.ply"
    paired = tmp_path / "pairs.csv"

    code = warp.main(_args(*cli_inputs, "--output", str(output), "--paired-csv", str(paired)))

    assert code == 0
    assert output.exists()
    assert len(paired.read_text().splitlines()) == 5

    warped = load_mesh(output)
    assert warped.num_triangles == 12
    assert "Paired landmarks: 4" in capsys.readouterr().out


def test_blend_zero_leaves_mesh_in_place(cli_inputs, tmp_path):
    output = tmp_path / "identity.ply"
    assert warp.main(_args(*cli_inputs, "--blend", "0", "--output", str(output))) == 0

    bounds = load_mesh(output).bounds()
    np.testing.assert_allclose(bounds.min, (0.0, 0.0, 0.0), atol=1e-6)
    np.testing.assert_allclose(bounds.max, (1.0, 1.0, 1.0), atol=1e-6)


def test_missing_input_returns_error(cli_inputs, tmp_path, capsys):
    _, src_csv, dst_csv = cli_inputs
    code = warp.main(_args(tmp_path / "absent.obj", src_csv, dst_csv))
    assert code == 1
    assert "Error: Source mesh file not found" in capsys.readouterr().out


def test_blend_out_of_range_returns_error(cli_inputs):
    assert warp.main(_args(*cli_inputs, "--blend", "1.5")) == 1


def test_unsupported_output_format_returns_error(cli_inputs, tmp_path):
    assert warp.main(_args(*cli_inputs, "--output", str(tmp_path / "out.fbx"))) == 1


def test_config_file_is_applied(cli_inputs, tmp_path):
    config = tmp_path / "warp.yaml"
    config.write_text(f"output:\n  results_dir: {tmp_path / 'results'}\n  mesh_format: stl\n")

    assert warp.main(_args(*cli_inputs, "--config", str(config))) == 0
    written = list((tmp_path / "results").glob("cube_warped_*.stl"))
    assert len(written) == 1


def test_missing_config_returns_error(cli_inputs, tmp_path):
    assert warp.main(_args(*cli_inputs, "--config", str(tmp_path / "nope.yaml"))) == 1


def test_default_config_file_is_used_when_present(cli_inputs, tmp_path, monkeypatch):
    workdir = tmp_path / "work"
    (workdir / "config").mkdir(parents=True)
    (workdir / "config" / "warp.yaml").write_text("output:\n  results_dir: out\n  mesh_format: ply\n")
    monkeypatch.chdir(workdir)

    assert warp.main(_args(*cli_inputs)) == 0
    assert len(list((workdir / "out").glob("cube_warped_*.ply"))) == 1
