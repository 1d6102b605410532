"""
Placement and outlined drawing of the watermark block.
"""

# Standard Library
from collections.abc import Callable

# PIP3 modules
import PIL.Image
import PIL.ImageDraw

# local repo modules
import photo_date_stamp as pds
import photo_date_stamp.config
import photo_date_stamp.text_fit


FittedFace = pds.config.FittedFace
Placement = pds.config.Placement

OUTLINE_COLOR = pds.config.OUTLINE_COLOR
FILL_COLOR = pds.config.FILL_COLOR
OUTLINE_RADIUS_DIVISOR = pds.config.OUTLINE_RADIUS_DIVISOR


#============================================
def compute_placements(
	lines: list[str],
	fitted: FittedFace,
	image_size: tuple[int, int],
	margin: int,
	measure: Callable[[str], int],
) -> list[Placement]:
	"""
	Compute right-aligned baseline origins for each line.

	The block bottom sits margin pixels above the image bottom. The top
	baseline is clamped to ascent + margin, so tall blocks overlap instead of
	leaving the image.

	Args:
		lines: Wrapped lines, top to bottom.
		fitted: Chosen face and metrics.
		image_size: Image (width, height).
		margin: Margin in pixels.
		measure: Width function for the face.

	Returns:
		List of Placement entries.
	"""
	width, height = image_size
	line_height = fitted.line_height
	start_y = height - margin - fitted.descent - (len(lines) - 1) * line_height
	if start_y < fitted.ascent + margin:
		start_y = fitted.ascent + margin
	placements: list[Placement] = []
	for index, line in enumerate(lines):
		x = width - measure(line) - margin
		if x < margin:
			x = margin
		placements.append(Placement(line=line, x=x, y=start_y + index * line_height))
	return placements


#============================================
def outline_radius(line_height: int) -> int:
	"""
	Outline neighborhood radius for a line height.

	Args:
		line_height: Line height in pixels.

	Returns:
		Radius in pixels, at least 1.
	"""
	return max(line_height // OUTLINE_RADIUS_DIVISOR, 1)


#============================================
def outline_offsets(radius: int) -> list[tuple[int, int]]:
	"""
	List every offset in the square neighborhood except the center.

	Args:
		radius: Neighborhood radius.

	Returns:
		List of (dx, dy) offsets.
	"""
	offsets = []
	for dy in range(-radius, radius + 1):
		for dx in range(-radius, radius + 1):
			if dx == 0 and dy == 0:
				continue
			offsets.append((dx, dy))
	return offsets


#============================================
def draw_outlined_lines(
	image: PIL.Image.Image,
	placements: list[Placement],
	fitted: FittedFace,
) -> PIL.Image.Image:
	"""
	Draw outlined text lines over an image.

	Outline passes go at every neighborhood offset, then one fill pass at the
	origin. Text is drawn on a transparent layer and alpha composited.

	Args:
		image: Source image.
		placements: Line origins with baseline y values.
		fitted: Chosen face and metrics.

	Returns:
		New RGBA image.
	"""
	base = image.convert("RGBA")
	overlay = PIL.Image.new("RGBA", base.size, (0, 0, 0, 0))
	draw = PIL.ImageDraw.Draw(overlay)
	offsets = outline_offsets(outline_radius(fitted.line_height))
	for placement in placements:
		if not placement.line:
			continue
		# Pillow anchors at the ascender line, placements hold baselines
		top = placement.y - fitted.ascent
		for dx, dy in offsets:
			draw.text((placement.x + dx, top + dy), placement.line, font=fitted.face, fill=OUTLINE_COLOR)
		draw.text((placement.x, top), placement.line, font=fitted.face, fill=FILL_COLOR)
	return PIL.Image.alpha_composite(base, overlay)


#============================================
def place_text(
	image: PIL.Image.Image,
	text: str,
	fitted: FittedFace,
	margin: int,
	max_width: int,
) -> tuple[PIL.Image.Image, list[Placement]]:
	"""
	Wrap, place, and draw the watermark text.

	Args:
		image: Source image.
		text: Date text.
		fitted: Chosen face and metrics.
		margin: Margin in pixels.
		max_width: Line width budget in pixels.

	Returns:
		Tuple of (stamped RGBA image, placements).
	"""
	measure = pds.text_fit.face_measure(fitted.face)
	lines = pds.text_fit.wrap_text(text, max_width, measure)
	placements = compute_placements(lines, fitted, image.size, margin, measure)
	stamped = draw_outlined_lines(image, placements, fitted)
	return stamped, placements
