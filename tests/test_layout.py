import PIL.Image

import photo_date_stamp.config
import photo_date_stamp.fonts
import photo_date_stamp.layout as layout


FittedFace = photo_date_stamp.config.FittedFace


#============================================
def ten_per_char(value: str) -> int:
	return len(value) * 10


#============================================
def build_fitted() -> FittedFace:
	"""
	Build metrics-only face data for placement math.
	"""
	return FittedFace(face=None, point_size=10.0, ascent=8, descent=2)


#============================================
def test_placements_right_aligned_above_bottom_margin() -> None:
	placements = layout.compute_placements(["ab", "cde"], build_fitted(), (200, 100), 5, ten_per_char)
	assert [(p.line, p.x, p.y) for p in placements] == [
		("ab", 175, 83),
		("cde", 165, 93),
	]
	# bottom of the last line sits margin pixels above the image bottom
	assert placements[-1].y + 2 == 100 - 5


#============================================
def test_placements_clamp_top_baseline() -> None:
	"""
	A block taller than the image starts at ascent + margin.
	"""
	lines = ["x"] * 20
	placements = layout.compute_placements(lines, build_fitted(), (200, 100), 5, ten_per_char)
	assert placements[0].y == 8 + 5
	assert placements[1].y - placements[0].y == 10


#============================================
def test_placements_clamp_left_margin() -> None:
	placements = layout.compute_placements(["x" * 50], build_fitted(), (200, 100), 7, ten_per_char)
	assert placements[0].x == 7


#============================================
def test_outline_radius_scales_with_line_height() -> None:
	assert layout.outline_radius(0) == 1
	assert layout.outline_radius(19) == 1
	assert layout.outline_radius(40) == 2
	assert layout.outline_radius(100) == 5


#============================================
def test_outline_offsets_skip_center() -> None:
	for radius in (1, 2, 3):
		offsets = layout.outline_offsets(radius)
		assert (0, 0) not in offsets
		assert len(offsets) == (2 * radius + 1) ** 2 - 1
		assert len(set(offsets)) == len(offsets)


#============================================
def test_draw_outlined_lines_marks_bottom_right() -> None:
	"""
	Drawing leaves white fill and dark outline pixels in the bottom-right.
	"""
	image = PIL.Image.new("RGB", (240, 120), (128, 128, 128))
	fitted = photo_date_stamp.fonts.fallback_face()
	stamped, placements = layout.place_text(image, "2021-07-04 10:20:30", fitted, 6, 200)
	assert stamped.mode == "RGBA"
	assert stamped.size == image.size
	assert image.getpixel((0, 0)) == (128, 128, 128)
	assert placements

	region = stamped.crop((120, 60, 240, 120)).convert("RGB")
	colors = {color for _count, color in region.getcolors(maxcolors=region.width * region.height)}
	assert any(min(color) > 200 for color in colors)
	assert any(max(color) < 100 for color in colors)
	# the top-left corner is untouched
	assert stamped.getpixel((0, 0))[:3] == (128, 128, 128)
