"""
Single-line text fitting and centering.
"""

# Standard Library
import functools
import logging
import typing

# PIP3 modules
import PIL.ImageFont
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfbase.ttfonts

# local repo modules
import order_label_printer as olp
import order_label_printer.config


FontCalibration = olp.config.FontCalibration
GlyphFitResult = olp.config.GlyphFitResult
PageBounds = olp.config.PageBounds

MIN_FONT_SIZE_PT = olp.config.MIN_FONT_SIZE_PT
MAX_FONT_SIZE_PT = olp.config.MAX_FONT_SIZE_PT
MAX_FIT_ITERATIONS = olp.config.MAX_FIT_ITERATIONS
FIT_TOLERANCE_PT = olp.config.FIT_TOLERANCE_PT
FIT_SHRINK_MARGIN = olp.config.FIT_SHRINK_MARGIN

# measure(text, font_name, font_size) -> advance width in points
MeasureFunc = typing.Callable[[str, str, float], float]
# ink(text, font_name) -> (bottom, top) relative to the baseline, in 1/1000 em
InkFunc = typing.Callable[[str, str], tuple[float, float]]

# glyph units per em for ReportLab metrics
UNITS_PER_EM = 1000
# rasterizer rounding on TrueType outlines
TTF_INK_MARGIN = 2.0

# Helvetica-Bold glyph boxes (bottom, top) from the Adobe AFM, grouped by shape
HELVETICA_BOLD_INK_GROUPS = (
	("ABDEFHIKLMNPRTVWXYZ!", (0.0, 718.0)),
	("CGOS@/\\", (-19.0, 737.0)),
	("U&", (-19.0, 718.0)),
	("J", (-18.0, 718.0)),
	("Q", (-52.0, 737.0)),
	("0123456789%", (-19.0, 710.0)),
	("#", (0.0, 698.0)),
	("?", (0.0, 727.0)),
	("()", (-208.0, 734.0)),
	("[]{}", (-196.0, 722.0)),
	("|", (-225.0, 775.0)),
	("$", (-115.0, 775.0)),
	(",", (-168.0, 146.0)),
	(";", (-168.0, 512.0)),
	(".", (0.0, 146.0)),
	(":", (0.0, 512.0)),
	("-", (215.0, 345.0)),
	("_", (-125.0, -75.0)),
	("+", (0.0, 506.0)),
	("=", (82.0, 424.0)),
	("<>", (-8.0, 514.0)),
	("*", (396.0, 718.0)),
	("'\"", (447.0, 718.0)),
	("^", (323.0, 698.0)),
	("~", (163.0, 343.0)),
	("`", (604.0, 750.0)),
)
HELVETICA_BOLD_INK = {
	char: extent for chars, extent in HELVETICA_BOLD_INK_GROUPS for char in chars
}
# FontBBox, for glyphs outside the table such as accented capitals
HELVETICA_BOLD_FONT_BBOX_INK = (-228.0, 962.0)

logger = logging.getLogger(__name__)


#============================================
def measure_string_width(text: str, font_name: str, font_size: float) -> float:
	"""
	Measure a string with the ReportLab font metrics.

	Args:
		text: Text to measure.
		font_name: Registered ReportLab font name.
		font_size: Font size in points.

	Returns:
		Advance width in points.
	"""
	return reportlab.pdfbase.pdfmetrics.stringWidth(text, font_name, font_size)


#============================================
@functools.lru_cache(maxsize=8)
def _load_ink_font(font_file: str) -> PIL.ImageFont.FreeTypeFont:
	# one pixel per glyph unit
	return PIL.ImageFont.truetype(font_file, UNITS_PER_EM)


#============================================
def _table_ink_extent(text: str) -> tuple[float, float] | None:
	bottom = None
	top = None
	for char in text:
		if char.isspace():
			continue
		char_bottom, char_top = HELVETICA_BOLD_INK.get(char, HELVETICA_BOLD_FONT_BBOX_INK)
		bottom = char_bottom if bottom is None else min(bottom, char_bottom)
		top = char_top if top is None else max(top, char_top)
	if bottom is None:
		return None
	return (bottom, top)


#============================================
def measure_ink_extent(text: str, font_name: str) -> tuple[float, float] | None:
	"""
	Measure the vertical ink extent of a string.

	TrueType faces are rasterized with Pillow at 1000 pixels per em.
	Built-in faces use their glyph box table.

	Args:
		text: Text to measure.
		font_name: Registered ReportLab font name.

	Returns:
		Tuple of (bottom, top) relative to the baseline in 1/1000 em,
		or None when the string has no ink.
	"""
	font = reportlab.pdfbase.pdfmetrics.getFont(font_name)
	if isinstance(font, reportlab.pdfbase.ttfonts.TTFont):
		ink_font = _load_ink_font(font.face.filename)
		# anchor "ls": origin on the baseline, y grows downward
		left, upper, right, lower = ink_font.getbbox(text, anchor="ls")
		if right <= left or lower <= upper:
			return None
		return (-lower - TTF_INK_MARGIN, -upper + TTF_INK_MARGIN)
	return _table_ink_extent(text)


#============================================
def resolve_cap_height_ratio(font_name: str, calibration: FontCalibration) -> float:
	"""
	Get the cap height as a fraction of the font size.

	Prefers the cap height the font face exposes (ReportLab scales face
	metrics to 1000 units per em) and falls back to the calibration
	constant for faces without one.

	Args:
		font_name: Registered ReportLab font name.
		calibration: Calibration for this font.

	Returns:
		Cap height ratio in (0, 1].
	"""
	font = reportlab.pdfbase.pdfmetrics.getFont(font_name)
	cap_height = getattr(font.face, "capHeight", None)
	if cap_height:
		ratio = cap_height / 1000.0
		if 0.0 < ratio <= 1.0:
			return ratio
	return calibration.cap_height_ratio


#============================================
def _shrink_to_width(
	text: str,
	font_name: str,
	font_size: float,
	area_width: float,
	measure: MeasureFunc,
) -> tuple[float, float]:
	width = measure(text, font_name, font_size)
	iterations = 0
	while width > area_width + FIT_TOLERANCE_PT:
		if iterations >= MAX_FIT_ITERATIONS:
			raise ValueError(
				f"Width did not converge after {MAX_FIT_ITERATIONS} iterations "
				f"({width:.2f} > {area_width:.2f})."
			)
		scale = area_width / width
		if iterations > 0:
			# measurer is not linear in size; step past the target
			scale *= 1.0 - FIT_SHRINK_MARGIN
		font_size *= scale
		width = measure(text, font_name, font_size)
		iterations += 1
	if width <= 0.0:
		raise ValueError(f"Text {text!r} has no measurable width.")
	return (font_size, width)


#============================================
def solve_fit(
	text: str,
	font_name: str,
	area_width: float,
	area_height: float,
	cap_height_ratio: float,
	measure: MeasureFunc | None = None,
	ink: InkFunc | None = None,
) -> GlyphFitResult:
	"""
	Solve the largest font size that fits text in a box.

	Starts from the size whose cap height fills the box height, then
	shrinks by the width overflow ratio until the measured width fits.
	The ink extent of the actual string is then measured; descenders,
	brackets and accents that reach past the box height shrink the size
	again so the ink fits.

	Args:
		text: Text to fit.
		font_name: Registered ReportLab font name.
		area_width: Box width in points.
		area_height: Box height in points.
		cap_height_ratio: Cap height per point of font size.
		measure: Optional width measurement function.
		ink: Optional ink extent function.

	Returns:
		GlyphFitResult at the solved size.
	"""
	if not text:
		raise ValueError("Cannot fit empty text.")
	if area_width <= 0.0 or area_height <= 0.0:
		raise ValueError(f"Text area must be positive, got {area_width:.2f} x {area_height:.2f}.")
	if not 0.0 < cap_height_ratio <= 1.0:
		raise ValueError(f"Cap height ratio must be in (0, 1], got {cap_height_ratio}.")
	if measure is None:
		measure = measure_string_width
	if ink is None:
		ink = measure_ink_extent

	extent = ink(text, font_name)
	if extent is None or extent[1] <= extent[0]:
		# no ink to measure; treat the string as flat capitals
		extent = (0.0, cap_height_ratio * UNITS_PER_EM)
	ink_bottom, ink_top = extent
	ink_ratio = (ink_top - ink_bottom) / UNITS_PER_EM

	font_size = min(area_height / cap_height_ratio, MAX_FONT_SIZE_PT)
	font_size, width = _shrink_to_width(text, font_name, font_size, area_width, measure)
	if font_size * ink_ratio > area_height + FIT_TOLERANCE_PT:
		font_size = area_height / ink_ratio
		font_size, width = _shrink_to_width(text, font_name, font_size, area_width, measure)

	if font_size < MIN_FONT_SIZE_PT:
		logger.warning(
			"Text %r fits only at %.1fpt (below %.1fpt)",
			text,
			font_size,
			MIN_FONT_SIZE_PT,
		)

	return GlyphFitResult(
		font_size_pt=font_size,
		measured_width_pt=width,
		measured_visible_height_pt=font_size * ink_ratio,
		ink_bottom_pt=font_size * ink_bottom / UNITS_PER_EM,
	)


#============================================
def compute_text_origin(
	fit: GlyphFitResult,
	bounds: PageBounds,
	ascent_fraction: float,
) -> tuple[float, float]:
	"""
	Compute the drawString origin that centers the fitted text.

	The measured ink, not the em box, is centered: a string with a
	descender sits higher than one made of flat capitals.

	Args:
		fit: Solved fit for the text.
		bounds: Page geometry.
		ascent_fraction: Calibrated share of the visible height between ink bottom and center.

	Returns:
		Tuple of (x, baseline_y) in page points.
	"""
	text_x = bounds.text_area_x + (bounds.text_area_width - fit.measured_width_pt) / 2.0
	ink_bottom_y = bounds.text_center_y - fit.measured_visible_height_pt * ascent_fraction
	baseline_y = ink_bottom_y - fit.ink_bottom_pt
	return (text_x, baseline_y)
