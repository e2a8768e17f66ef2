"""End-to-end tests for the command-line scripts."""

import sys

import numpy as np

import batch_process
import main as cli
from quilter import load_texture, save_image


def _write_texture(path, seed=0, size=24):
    texture = np.random.default_rng(seed).integers(1, 256, (size, size, 3), dtype=np.uint8)
    save_image(texture, str(path))
    return texture


class TestMain:

    def test_synthesizes_and_saves(self, tmp_path):
        source = tmp_path / "texture.png"
        _write_texture(source)
        output = tmp_path / "out" / "result.png"

        code = cli.main([
            "--input", str(source), "--output", str(output),
            "--patch-size", "8", "--overlap-size", "2",
            "--output-width", "20", "--output-height", "26",
            "--seed", "1", "--log-level", "WARNING",
        ])

        assert code == 0
        assert load_texture(str(output)).shape == (26, 20, 3)

    def test_grayscale_run(self, tmp_path):
        source = tmp_path / "texture.png"
        _write_texture(source, seed=5)
        output = tmp_path / "gray.png"

        code = cli.main([
            "--input", str(source), "--output", str(output), "--grayscale",
            "--patch-size", "8", "--overlap-size", "2",
            "--output-width", "14", "--output-height", "14",
            "--seed", "2", "--log-level", "WARNING",
        ])

        assert code == 0
        assert load_texture(str(output), grayscale=True).shape == (14, 14)

    def test_debug_dir_and_evaluate(self, tmp_path):
        source = tmp_path / "texture.png"
        _write_texture(source, seed=2)
        debug_dir = tmp_path / "debug"

        code = cli.main([
            "--input", str(source), "--output", str(tmp_path / "result.png"),
            "--patch-size", "8", "--overlap-size", "2",
            "--output-width", "20", "--output-height", "20",
            "--lateral-seams", "--seam-borders", "--seed", "4",
            "--debug-dir", str(debug_dir), "--evaluate",
            "--visualize", str(tmp_path / "comparison.png"),
        ])

        assert code == 0
        for name in ("seed.png", "complete.png", "seams.png"):
            assert (debug_dir / name).exists()
        assert (tmp_path / "comparison.png").exists()

    def test_missing_input(self, tmp_path):
        assert cli.main(["--input", str(tmp_path / "nope.png")]) == 1

    def test_invalid_configuration(self, tmp_path):
        source = tmp_path / "texture.png"
        _write_texture(source)
        code = cli.main([
            "--input", str(source), "--output", str(tmp_path / "result.png"),
            "--patch-size", "8", "--overlap-size", "8",
        ])
        assert code == 1


class TestBatch:

    def test_processes_directory(self, tmp_path, monkeypatch):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        _write_texture(data_dir / "a.png", seed=1)
        _write_texture(data_dir / "b.png", seed=2)
        (data_dir / "notes.txt").write_text("not an image")
        results_dir = tmp_path / "results"

        monkeypatch.setattr(sys, "argv", [
            "batch_process.py", "--data_dir", str(data_dir), "--results_dir", str(results_dir),
            "--output_width", "21", "--output_height", "20",
            "--patch_size", "8", "--overlap_size", "2", "--seed", "0",
        ])

        assert batch_process.main() == 0
        outputs = sorted(p.name for p in results_dir.iterdir())
        assert outputs == ["a_quilted_w20_h20_p8.png", "b_quilted_w20_h20_p8.png"]

    def test_missing_directory(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["batch_process.py", "--data_dir", str(tmp_path / "none")])
        assert batch_process.main() == 1

    def test_failures_are_counted_and_skipped(self, tmp_path, monkeypatch):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        _write_texture(data_dir / "good.png", seed=3)
        _write_texture(data_dir / "tiny.png", seed=4, size=4)
        (data_dir / "broken.png").write_bytes(b"not a png")
        results_dir = tmp_path / "results"

        monkeypatch.setattr(sys, "argv", [
            "batch_process.py", "--data_dir", str(data_dir), "--results_dir", str(results_dir),
            "--output_width", "14", "--output_height", "14",
            "--patch_size", "8", "--overlap_size", "2", "--seed", "0",
        ])

        # Unreadable file and patch larger than the texture both fail; the rest still runs
        assert batch_process.main() == 1
        assert [p.name for p in results_dir.iterdir()] == ["good_quilted_w14_h14_p8.png"]
