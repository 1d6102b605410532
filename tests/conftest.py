"""
Pytest configuration: local imports, fake fonts, and image helpers.
"""

# Standard Library
import math
import os
import pathlib
import sys

# PIP3 modules
import PIL.Image
import PIL.ImageFont
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()

# local repo modules
import photo_date_stamp.fonts  # noqa: E402


#============================================
class FakeFace:
	"""
	Face whose glyphs are all half a point wide.
	"""

	def __init__(self, size: float) -> None:
		self.size = size

	def getlength(self, text: str) -> float:
		return len(text) * self.size * 0.5

	def getmetrics(self) -> tuple[int, int]:
		return (int(math.ceil(self.size * 0.8)), int(math.ceil(self.size * 0.2)))


#============================================
class FakeFontSource:
	"""
	Font source building FakeFace objects, failing above max_size.
	"""

	def __init__(self, max_size: float | None = None) -> None:
		self.max_size = max_size
		self.sizes: list[float] = []

	def create_face(self, size: float) -> FakeFace:
		self.sizes.append(size)
		if self.max_size is not None and size > self.max_size:
			raise OSError("invalid pixel size")
		return FakeFace(size)


#============================================
@pytest.fixture
def fake_font_source():
	return FakeFontSource


#============================================
@pytest.fixture
def fake_face():
	return FakeFace


#============================================
@pytest.fixture
def real_font_source() -> photo_date_stamp.fonts.FontSource:
	"""
	FontSource built from the TrueType font bundled with Pillow.
	"""
	face = PIL.ImageFont.load_default(size=20)
	data = getattr(face, "font_bytes", None)
	if not data:
		pytest.skip("Pillow built without FreeType font bytes")
	return photo_date_stamp.fonts.FontSource(path="<pillow default>", data=data)


#============================================
def write_image(
	path: pathlib.Path,
	size: tuple[int, int] = (320, 240),
	color: tuple[int, int, int] = (40, 90, 160),
	exif_date: str | None = None,
) -> pathlib.Path:
	"""
	Write a solid test image; format follows the extension.

	Args:
		path: Output path.
		size: Image size.
		color: Fill color.
		exif_date: Optional EXIF DateTime value (JPEG only).

	Returns:
		The path written.
	"""
	path.parent.mkdir(parents=True, exist_ok=True)
	image = PIL.Image.new("RGB", size, color)
	if path.suffix.lower() == ".png":
		image.save(path, "PNG")
		return path
	if exif_date is not None:
		exif = PIL.Image.Exif()
		exif[306] = exif_date
		image.save(path, "JPEG", exif=exif)
		return path
	image.save(path, "JPEG")
	return path


#============================================
@pytest.fixture
def make_image():
	return write_image
