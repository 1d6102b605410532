import os
import pathlib

import pytest

import photo_date_stamp.cli as cli
import photo_date_stamp.fonts


#============================================
def run_args(argv: list[str]) -> int:
	"""
	Parse argv and run the pipeline.

	Returns:
		Exit code.
	"""
	args = cli.parse_args(argv)
	return cli.run_pipeline(cli.build_config(args))


#============================================
def test_parse_args_defaults() -> None:
	args = cli.parse_args(["photos"])
	assert args.input_path == "photos"
	assert args.output_path is None
	assert args.recursive is False
	assert args.rename_to_date is False
	assert args.width_percent == cli.DEFAULT_WIDTH_PERCENT
	assert args.margin == cli.DEFAULT_MARGIN_PERCENT
	config = cli.build_config(args)
	assert config.concurrency >= 1
	assert config.enforce_height is True


#============================================
def test_parse_args_rejects_bad_values() -> None:
	with pytest.raises(SystemExit):
		cli.parse_args(["photos", "-w", "0"])
	with pytest.raises(SystemExit):
		cli.parse_args(["photos", "-w", "101"])
	with pytest.raises(SystemExit):
		cli.parse_args(["photos", "-j", "0"])


#============================================
def test_output_names_directory(tmp_path: pathlib.Path) -> None:
	assert cli.output_names_directory(str(tmp_path))
	assert cli.output_names_directory("new_dir" + os.sep)
	assert cli.output_names_directory("new_dir/")
	assert not cli.output_names_directory(str(tmp_path / "file.jpg"))
	assert not cli.output_names_directory(None)


#============================================
def test_missing_input_is_setup_error(tmp_path: pathlib.Path, capsys) -> None:
	assert run_args([str(tmp_path / "missing")]) == cli.EXIT_SETUP_ERROR
	assert "stat input" in capsys.readouterr().err


#============================================
def test_single_file_beside_source(tmp_path: pathlib.Path, make_image, capsys) -> None:
	source = make_image(tmp_path / "pic.png")
	assert run_args([str(source)]) == cli.EXIT_OK
	expected = tmp_path / "pic_watermarked.png"
	assert expected.is_file()
	assert f"wrote {expected}" in capsys.readouterr().out


#============================================
def test_single_file_into_directory(tmp_path: pathlib.Path, make_image) -> None:
	"""
	A trailing separator makes -o a directory, created on demand.
	"""
	source = make_image(tmp_path / "pic.jpg")
	out_dir = tmp_path / "results"
	assert run_args([str(source), "-o", str(out_dir) + os.sep]) == cli.EXIT_OK
	assert (out_dir / "pic_watermarked.jpg").is_file()


#============================================
def test_single_file_explicit_output(tmp_path: pathlib.Path, make_image) -> None:
	source = make_image(tmp_path / "pic.jpg")
	target = tmp_path / "stamped.jpg"
	assert run_args([str(source), "-o", str(target)]) == cli.EXIT_OK
	assert target.is_file()


#============================================
def test_single_file_failure_halts(tmp_path: pathlib.Path, capsys) -> None:
	source = tmp_path / "broken.png"
	source.write_bytes(b"nope")
	assert run_args([str(source)]) == cli.EXIT_SETUP_ERROR
	assert "decode image" in capsys.readouterr().err


#============================================
def test_single_file_bad_font_is_fatal(tmp_path: pathlib.Path, make_image) -> None:
	source = make_image(tmp_path / "pic.png")
	bad_font = tmp_path / "bad.ttf"
	bad_font.write_bytes(b"not a font")
	assert run_args([str(source), "-f", str(bad_font)]) == cli.EXIT_SETUP_ERROR
	assert not (tmp_path / "pic_watermarked.png").exists()


#============================================
def test_batch_bad_font_falls_back(tmp_path: pathlib.Path, make_image, capsys) -> None:
	root = tmp_path / "in"
	make_image(root / "pic.png")
	bad_font = tmp_path / "bad.ttf"
	bad_font.write_bytes(b"not a font")
	exit_code = run_args([str(root), "-o", str(tmp_path / "out"), "-f", str(bad_font), "-j", "1"])
	assert exit_code == cli.EXIT_OK
	assert (tmp_path / "out" / "pic_watermarked.png").is_file()
	assert "built-in font" in capsys.readouterr().err


#============================================
def test_batch_failures_keep_exit_zero(tmp_path: pathlib.Path, make_image) -> None:
	root = tmp_path / "in"
	make_image(root / "ok.jpg")
	(root / "broken.jpg").write_bytes(b"nope")
	assert run_args([str(root), "-o", str(tmp_path / "out")]) == cli.EXIT_OK


#============================================
def test_find_system_font_case_insensitive(tmp_path: pathlib.Path) -> None:
	font_dir = tmp_path / "fonts"
	font_dir.mkdir()
	font_file = font_dir / "DejaVuSans.TTF"
	font_file.write_bytes(b"font")
	empty_dir = tmp_path / "missing_dir"
	found = photo_date_stamp.fonts.find_system_font("dejavusans.ttf", [empty_dir, font_dir])
	assert found == font_file
	assert photo_date_stamp.fonts.find_system_font("other.ttf", [font_dir]) is None


#============================================
def test_load_font_source(real_font_source, tmp_path: pathlib.Path) -> None:
	font_file = tmp_path / "default.ttf"
	font_file.write_bytes(real_font_source.data)
	source = photo_date_stamp.fonts.load_font_source(str(font_file))
	face = source.create_face(24.0)
	assert face.getlength("2021") > 0
	with pytest.raises(photo_date_stamp.fonts.SetupError):
		photo_date_stamp.fonts.load_font_source(str(tmp_path / "absent.ttf"))
