"""
Text wrapping and adaptive font size search.
"""

# Standard Library
import math
from collections.abc import Callable

# local repo modules
import photo_date_stamp as pds
import photo_date_stamp.config
import photo_date_stamp.fonts


FittedFace = pds.config.FittedFace

MIN_FONT_SIZE = pds.config.MIN_FONT_SIZE
SOLVER_ITERATIONS = pds.config.SOLVER_ITERATIONS


#============================================
def measure_width(face, text: str) -> int:
	"""
	Measure a string in whole device pixels.

	Args:
		face: Pillow font object.
		text: Text to measure.

	Returns:
		Width in pixels, rounded up.
	"""
	return int(math.ceil(face.getlength(text)))


#============================================
def face_measure(face) -> Callable[[str], int]:
	"""
	Bind measure_width to one face.

	Args:
		face: Pillow font object.

	Returns:
		Width function for strings.
	"""
	def measure(text: str) -> int:
		return measure_width(face, text)
	return measure


#============================================
def _break_token(token: str, max_width: int, measure: Callable[[str], int]) -> list[str]:
	"""
	Break one token into character runs that fit max_width.

	A single character wider than max_width becomes its own run.
	"""
	parts: list[str] = []
	part = ""
	for char in token:
		trial = part + char
		if measure(trial) <= max_width:
			part = trial
			continue
		if part:
			parts.append(part)
		part = char
	if part:
		parts.append(part)
	return parts


#============================================
def wrap_text(text: str, max_width: int, measure: Callable[[str], int]) -> list[str]:
	"""
	Greedily wrap text into lines no wider than max_width.

	Tokens are split on whitespace and joined with single spaces. A token too
	wide for a line on its own is broken by character.

	Args:
		text: Input text.
		max_width: Maximum line width in pixels.
		measure: Width function for a string.

	Returns:
		List of lines, never empty.
	"""
	tokens = text.split()
	if not tokens:
		return [""]
	lines: list[str] = []
	current = ""
	for token in tokens:
		candidate = token if not current else f"{current} {token}"
		if measure(candidate) <= max_width:
			current = candidate
			continue
		if current:
			lines.append(current)
		parts = _break_token(token, max_width, measure)
		lines.extend(parts[:-1])
		current = parts[-1]
	lines.append(current)
	return lines


#============================================
def widest_line(lines: list[str], measure: Callable[[str], int]) -> int:
	"""
	Get the widest measured line.

	Args:
		lines: Lines of text.
		measure: Width function.

	Returns:
		Widest width in pixels.
	"""
	return max((measure(line) for line in lines), default=0)


#============================================
def is_width_feasible(face, text: str, target_width: int) -> bool:
	"""
	Check whether the wrapped text fits the target width at this face.

	Args:
		face: Trial face.
		text: Text to wrap.
		target_width: Width budget in pixels.

	Returns:
		True if the widest wrapped line fits.
	"""
	measure = face_measure(face)
	lines = wrap_text(text, target_width, measure)
	return widest_line(lines, measure) <= target_width


#============================================
def block_height(face, text: str, target_width: int) -> int:
	"""
	Compute the wrapped block height for a face.

	Args:
		face: Trial face.
		text: Text to wrap.
		target_width: Width budget in pixels.

	Returns:
		Line count times line height.
	"""
	ascent, descent = pds.fonts.face_metrics(face)
	lines = wrap_text(text, target_width, face_measure(face))
	return len(lines) * (ascent + descent)


#============================================
def _try_face(font_source, size: float):
	try:
		return font_source.create_face(size)
	except (OSError, ValueError):
		return None


#============================================
def _bisect_size(
	font_source,
	lo: float,
	hi: float,
	iterations: int,
	fits: Callable[[object], bool],
) -> tuple[float, object] | None:
	"""
	Bisect for the largest size in [lo, hi] whose face passes fits().

	Returns:
		Tuple of (size, face) for the best size seen, or None.
	"""
	best = None
	for _ in range(iterations):
		mid = (lo + hi) / 2.0
		face = _try_face(font_source, mid)
		if face is not None and fits(face):
			best = (mid, face)
			lo = mid
		else:
			hi = mid
	return best


#============================================
def _to_fitted(size: float, face) -> FittedFace:
	ascent, descent = pds.fonts.face_metrics(face)
	return FittedFace(face=face, point_size=size, ascent=ascent, descent=descent)


#============================================
def solve_font_size(
	font_source,
	text: str,
	target_width: int,
	target_height: int,
	upper_size: float,
	enforce_height: bool = True,
	iterations: int = SOLVER_ITERATIONS,
) -> FittedFace:
	"""
	Find the largest font size whose wrapped text fits the target box.

	Width is searched first over [MIN_FONT_SIZE, upper_size]. When
	enforce_height is set and the result is taller than target_height, a
	second search over [MIN_FONT_SIZE, best] requires both width and height
	to fit; if nothing passes, the width fit is kept and the block overflows.

	Args:
		font_source: Object with create_face(size), or None.
		text: Text to fit.
		target_width: Width budget in pixels.
		target_height: Height budget in pixels.
		upper_size: Upper bound for the search, usually the image width.
		enforce_height: Shrink to fit target_height when possible.
		iterations: Bisection steps per search.

	Returns:
		FittedFace, or the built-in fallback face when nothing fits.
	"""
	if font_source is None:
		return pds.fonts.fallback_face()

	def fits_width(trial_face) -> bool:
		return is_width_feasible(trial_face, text, target_width)

	hi = max(float(upper_size), MIN_FONT_SIZE)
	best = _bisect_size(font_source, MIN_FONT_SIZE, hi, iterations, fits_width)
	if best is None:
		return pds.fonts.fallback_face()
	size, face = best
	if not enforce_height or block_height(face, text, target_width) <= target_height:
		return _to_fitted(size, face)

	def fits_box(trial_face) -> bool:
		if not is_width_feasible(trial_face, text, target_width):
			return False
		return block_height(trial_face, text, target_width) <= target_height

	shrunk = _bisect_size(font_source, MIN_FONT_SIZE, size, iterations, fits_box)
	if shrunk is None:
		return _to_fitted(size, face)
	return _to_fitted(shrunk[0], shrunk[1])
