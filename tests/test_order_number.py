import pytest

import order_label_printer.config
import order_label_printer.order_number


COLUMN_WIDTH = 10.0 * order_label_printer.config.MM_TO_PT
COLUMN_HEIGHT = 60.0 * order_label_printer.config.MM_TO_PT
EPSILON = 1e-9


#============================================
def layout(order_number: str, font_size: float = 20.0) -> list[order_label_printer.config.DigitPlacement]:
	"""
	Lay out an order number in the default column.
	"""
	return order_label_printer.order_number.layout_order_number(
		order_number,
		COLUMN_WIDTH,
		COLUMN_HEIGHT,
		font_size,
	)


#============================================
def test_extract_digits_drops_prefixes() -> None:
	"""
	Only ASCII digits survive.
	"""
	extract = order_label_printer.order_number.extract_digits
	assert extract("#1042") == "1042"
	assert extract("SO-10 42/A") == "1042"
	assert extract("") == ""
	assert extract(None) == ""


#============================================
def test_no_digits_renders_nothing() -> None:
	"""
	An order number without digits leaves the column empty.
	"""
	assert layout("#ABC") == []
	assert layout("") == []


#============================================
def test_stack_reads_top_to_bottom_in_order() -> None:
	"""
	The first digit is on top and the stack reads in order.
	"""
	placements = layout("#12345")
	assert [placement.character for placement in placements] == list("12345")
	assert order_label_printer.order_number.read_stack_top_to_bottom(placements) == "12345"
	assert placements[0].center_y > placements[-1].center_y


#============================================
def test_margins_are_equal_for_any_digit_count() -> None:
	"""
	Top and bottom margins match from 1 to 14 digits.
	"""
	for count in range(1, 15):
		digits = "".join(str(index % 10) for index in range(count))
		placements = layout(digits)
		assert len(placements) == count
		top_center = max(placement.center_y for placement in placements)
		bottom_center = min(placement.center_y for placement in placements)
		top_margin = COLUMN_HEIGHT - top_center
		bottom_margin = bottom_center
		assert abs(top_margin - bottom_margin) < 1e-6, count


#============================================
def test_single_digit_is_centered() -> None:
	"""
	A single digit sits at the column midpoint.
	"""
	placements = layout("7")
	assert len(placements) == 1
	placement = placements[0]
	assert abs(placement.center_x - COLUMN_WIDTH / 2.0) < EPSILON
	assert abs(placement.center_y - COLUMN_HEIGHT / 2.0) < EPSILON


#============================================
def test_spacing_is_uniform_and_rotated() -> None:
	"""
	Digits are evenly spaced, centered horizontally and rotated.
	"""
	placements = layout("9081726354")
	steps = [
		placements[index].center_y - placements[index + 1].center_y
		for index in range(len(placements) - 1)
	]
	for step in steps:
		assert abs(step - steps[0]) < 1e-6
	spacing_factor = order_label_printer.order_number.DEFAULT_SPACING_FACTOR
	assert abs(steps[0] - placements[0].font_size_pt * spacing_factor) < 1e-6
	for placement in placements:
		assert placement.rotation_degrees == -90.0
		assert abs(placement.center_x - COLUMN_WIDTH / 2.0) < EPSILON


#============================================
def test_rotated_footprint_fits_column() -> None:
	"""
	Rotated digits stay inside the column, shrinking long numbers.
	"""
	for digits in ("12345", "1234567890", "1234567890" * 3):
		placements = layout(digits)
		for placement in placements:
			assert placement.footprint_width <= COLUMN_WIDTH + 1e-6
			assert placement.center_y + placement.footprint_height / 2.0 <= COLUMN_HEIGHT + 1e-6
			assert placement.center_y - placement.footprint_height / 2.0 >= -1e-6
	long_placements = layout("1234567890" * 3)
	assert long_placements[0].font_size_pt < 20.0


#============================================
def test_short_numbers_keep_requested_size() -> None:
	"""
	Numbers that fit keep the requested digit size.
	"""
	placements = layout("1042")
	assert all(placement.font_size_pt == 20.0 for placement in placements)


#============================================
def test_empty_column_raises() -> None:
	"""
	A zero-size column cannot hold digits.
	"""
	with pytest.raises(ValueError):
		order_label_printer.order_number.layout_order_number("12", 0.0, COLUMN_HEIGHT, 20.0)


#============================================
class RecordingCanvas:
	"""
	Canvas stand-in that records transform and text calls.
	"""

	def __init__(self) -> None:
		self.calls: list[tuple] = []

	def saveState(self) -> None:
		self.calls.append(("saveState",))

	def restoreState(self) -> None:
		self.calls.append(("restoreState",))

	def translate(self, x: float, y: float) -> None:
		self.calls.append(("translate", x, y))

	def rotate(self, degrees: float) -> None:
		self.calls.append(("rotate", degrees))

	def setFont(self, font_name: str, font_size: float) -> None:
		self.calls.append(("setFont", font_name, font_size))

	def drawString(self, x: float, y: float, text: str) -> None:
		self.calls.append(("drawString", x, y, text))


#============================================
def test_digits_are_drawn_counter_clockwise() -> None:
	"""
	Digits get a positive ReportLab turn, so glyph tops face left.
	"""
	placements = layout("58")
	canvas = RecordingCanvas()
	order_label_printer.order_number.draw_order_number(canvas, placements, "Helvetica-Bold")
	rotations = [call[1] for call in canvas.calls if call[0] == "rotate"]
	assert rotations == [90.0, 90.0]
	texts = [call[3] for call in canvas.calls if call[0] == "drawString"]
	assert texts == ["5", "8"]
	translations = [call for call in canvas.calls if call[0] == "translate"]
	# first digit drawn at the top of the column
	assert translations[0][2] > translations[1][2]
