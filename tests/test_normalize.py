import io
import pathlib
import sys
import unittest

from PIL import Image

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "scripts"))
from restyle_image_api.core.contracts import AspectRatio, ConcreteRatio, ImageAsset
from restyle_image_api.core.errors import InvalidDimensions, InvalidRatio
from restyle_image_api.core.normalize import FitMode, contain_canvas, fill_box, normalize, normalize_asset
from restyle_image_api.core.ratios import SUPPORTED_RATIOS, closest_supported, concretize, parse_ratio
from restyle_image_api.core.utils import load_asset

SOURCE_COLOR = (10, 20, 30)
WHITE = (255, 255, 255)


def _png_bytes(width: int, height: int, color=SOURCE_COLOR, mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class TestClosestSupported(unittest.TestCase):
    def test_square_input(self) -> None:
        self.assertEqual(closest_supported(100, 100), ConcreteRatio(1, 1))

    def test_widescreen_input(self) -> None:
        self.assertEqual(closest_supported(1600, 900), ConcreteRatio(16, 9))

    def test_portrait_phone_input(self) -> None:
        self.assertEqual(closest_supported(1080, 1920), ConcreteRatio(9, 16))

    def test_very_wide_input_snaps_to_widest(self) -> None:
        self.assertEqual(closest_supported(3000, 1000), ConcreteRatio(21, 9))

    def test_tie_goes_to_first_listed(self) -> None:
        # 9/8 sits exactly between 1:1 and 5:4.
        self.assertEqual(closest_supported(9, 8), ConcreteRatio(1, 1))

    def test_result_is_always_in_catalogue(self) -> None:
        for width, height in [(1, 1000), (1000, 1), (333, 777), (640, 480)]:
            self.assertIn(closest_supported(width, height), SUPPORTED_RATIOS)

    def test_rejects_non_positive_dimensions(self) -> None:
        with self.assertRaises(InvalidDimensions):
            closest_supported(0, 100)
        with self.assertRaises(InvalidDimensions):
            closest_supported(100, -1)


class TestParseRatio(unittest.TestCase):
    def test_selectable_labels(self) -> None:
        self.assertIs(parse_ratio("16:9"), AspectRatio.WIDE)
        self.assertIs(parse_ratio("3/4"), AspectRatio.PORTRAIT)
        self.assertIs(parse_ratio("square"), AspectRatio.SQUARE)

    def test_sentinel_spellings(self) -> None:
        for text in ("match", "Match Reference", "match-reference", "auto"):
            self.assertIs(parse_ratio(text), AspectRatio.MATCH_REFERENCE)

    def test_other_ratios_become_concrete(self) -> None:
        self.assertEqual(parse_ratio("2:3"), ConcreteRatio(2, 3))

    def test_rejects_garbage(self) -> None:
        for text in ("wide", "16x9", "0:3", ""):
            with self.assertRaises(InvalidRatio):
                parse_ratio(text)

    def test_concretize_sentinel_uses_image_size(self) -> None:
        self.assertEqual(concretize(AspectRatio.MATCH_REFERENCE, 1600, 900), ConcreteRatio(16, 9))
        self.assertEqual(concretize("Match Reference", 800, 1200), ConcreteRatio(2, 3))

    def test_concretize_keeps_explicit_ratio(self) -> None:
        self.assertEqual(concretize(AspectRatio.PORTRAIT, 1600, 900), ConcreteRatio(3, 4))

    def test_sentinel_has_no_concrete_value(self) -> None:
        with self.assertRaises(InvalidRatio):
            AspectRatio.MATCH_REFERENCE.concrete()


class TestContain(unittest.TestCase):
    def test_landscape_into_widescreen(self) -> None:
        self.assertEqual(contain_canvas(1200, 800, ConcreteRatio(16, 9)), (1422, 800, 111, 0))

    def test_portrait_into_square(self) -> None:
        self.assertEqual(contain_canvas(800, 1200, ConcreteRatio(1, 1)), (1200, 1200, 200, 0))

    def test_wide_into_square_pads_vertically(self) -> None:
        self.assertEqual(contain_canvas(1000, 500, ConcreteRatio(1, 1)), (1000, 1000, 0, 250))

    def test_pads_without_scaling_or_cropping(self) -> None:
        source = Image.new("RGB", (1200, 800), SOURCE_COLOR)
        result = normalize(source, AspectRatio.WIDE, FitMode.CONTAIN)
        self.assertEqual(result.size, (1422, 800))
        self.assertAlmostEqual(result.width / result.height, 16 / 9, delta=0.01)
        self.assertEqual(result.getpixel((0, 400)), WHITE)
        self.assertEqual(result.getpixel((110, 400)), WHITE)
        self.assertEqual(result.getpixel((111, 400)), SOURCE_COLOR)
        self.assertEqual(result.getpixel((1310, 400)), SOURCE_COLOR)
        self.assertEqual(result.getpixel((1311, 400)), WHITE)

    def test_source_pixels_survive_at_offset(self) -> None:
        source = Image.new("RGB", (300, 600), SOURCE_COLOR)
        source.putpixel((0, 0), (200, 0, 0))
        source.putpixel((299, 599), (0, 200, 0))
        result = normalize(source, ConcreteRatio(1, 1), FitMode.CONTAIN)
        self.assertEqual(result.size, (600, 600))
        self.assertEqual(result.getpixel((150, 0)), (200, 0, 0))
        self.assertEqual(result.getpixel((449, 599)), (0, 200, 0))

    def test_matching_ratio_is_unchanged(self) -> None:
        source = Image.new("RGB", (1600, 900), SOURCE_COLOR)
        result = normalize(source, AspectRatio.WIDE, FitMode.CONTAIN)
        self.assertEqual(result.size, (1600, 900))

    def test_input_is_not_modified(self) -> None:
        source = Image.new("RGB", (400, 300), SOURCE_COLOR)
        before = source.tobytes()
        normalize(source, AspectRatio.TALL, FitMode.CONTAIN)
        normalize(source, AspectRatio.TALL, FitMode.FILL)
        self.assertEqual(source.size, (400, 300))
        self.assertEqual(source.tobytes(), before)

    def test_transparent_source_keeps_alpha(self) -> None:
        source = Image.new("RGBA", (200, 100), (10, 20, 30, 0))
        result = normalize(source, ConcreteRatio(1, 1), FitMode.CONTAIN, background=(255, 255, 255, 0))
        self.assertEqual(result.mode, "RGBA")
        self.assertEqual(result.size, (200, 200))


class TestFill(unittest.TestCase):
    def test_crop_box_is_centered(self) -> None:
        self.assertEqual(fill_box(1200, 800, ConcreteRatio(1, 1)), (200, 0, 1000, 800))
        self.assertEqual(fill_box(800, 1200, ConcreteRatio(1, 1)), (0, 200, 800, 1000))

    def test_crop_without_canvas_keeps_native_scale(self) -> None:
        source = Image.new("RGB", (1200, 800), SOURCE_COLOR)
        source.putpixel((200, 0), (200, 0, 0))
        result = normalize(source, AspectRatio.SQUARE, FitMode.FILL)
        self.assertEqual(result.size, (800, 800))
        self.assertEqual(result.getpixel((0, 0)), (200, 0, 0))

    def test_fills_requested_canvas_exactly(self) -> None:
        source = Image.new("RGB", (1200, 800), SOURCE_COLOR)
        result = normalize(source, AspectRatio.WIDE, FitMode.FILL, canvas_size=(640, 360))
        self.assertEqual(result.size, (640, 360))

    def test_rejects_empty_canvas(self) -> None:
        source = Image.new("RGB", (100, 100), SOURCE_COLOR)
        with self.assertRaises(InvalidDimensions):
            normalize(source, AspectRatio.WIDE, FitMode.FILL, canvas_size=(0, 10))


SWEEP_SIZES = [(1200, 800), (800, 1200), (1000, 1000), (333, 777), (1920, 1080), (50, 50), (50, 120)]


def _gradient(width: int, height: int) -> Image.Image:
    return Image.linear_gradient("L").resize((width, height)).convert("RGB")


class TestCatalogueSweep(unittest.TestCase):
    """Every catalogue ratio against a spread of source sizes."""

    def assertRatioClose(self, width: int, height: int, ratio: ConcreteRatio) -> None:
        target = ratio.width / ratio.height
        # One rounded side is off by at most half a pixel.
        tolerance = target / min(width, height)
        self.assertLessEqual(abs(width / height - target), tolerance)

    def test_contain_pads_centered_without_scaling(self) -> None:
        for width, height in SWEEP_SIZES:
            source = _gradient(width, height)
            for ratio in SUPPORTED_RATIOS:
                with self.subTest(size=(width, height), ratio=ratio.label):
                    canvas_w, canvas_h, left, top = contain_canvas(width, height, ratio)
                    self.assertRatioClose(canvas_w, canvas_h, ratio)
                    self.assertTrue(canvas_w == width or canvas_h == height)
                    self.assertGreaterEqual(canvas_w, width)
                    self.assertGreaterEqual(canvas_h, height)
                    self.assertEqual(left, (canvas_w - width) // 2)
                    self.assertEqual(top, (canvas_h - height) // 2)

                    result = normalize(source, ratio, FitMode.CONTAIN)
                    self.assertEqual(result.size, (canvas_w, canvas_h))
                    placed = result.crop((left, top, left + width, top + height))
                    self.assertEqual(placed.tobytes(), source.tobytes())

    def test_fill_crop_is_centered_and_maximal(self) -> None:
        for width, height in SWEEP_SIZES:
            source = _gradient(width, height)
            for ratio in SUPPORTED_RATIOS:
                with self.subTest(size=(width, height), ratio=ratio.label):
                    left, top, right, bottom = fill_box(width, height, ratio)
                    crop_w, crop_h = right - left, bottom - top
                    self.assertRatioClose(crop_w, crop_h, ratio)
                    self.assertTrue(crop_w == width or crop_h == height)
                    self.assertGreaterEqual(left, 0)
                    self.assertGreaterEqual(top, 0)
                    self.assertIn((width - right) - left, (0, 1))
                    self.assertIn((height - bottom) - top, (0, 1))

                    result = normalize(source, ratio, FitMode.FILL)
                    self.assertEqual(result.tobytes(), source.crop((left, top, right, bottom)).tobytes())


class TestNormalizeAsset(unittest.TestCase):
    def test_reencodes_as_png(self) -> None:
        asset = load_asset(_png_bytes(1200, 800))
        result = normalize_asset(asset, ConcreteRatio(16, 9))
        self.assertEqual(result.mime_type, "image/png")
        self.assertEqual(result.size, (1422, 800))
        with Image.open(io.BytesIO(result.data)) as decoded:
            self.assertEqual(decoded.size, (1422, 800))

    def test_rejects_zero_dimensions(self) -> None:
        empty = ImageAsset(data=b"", mime_type="image/png", width=0, height=10)
        with self.assertRaises(InvalidDimensions):
            normalize_asset(empty, AspectRatio.SQUARE)

    def test_rejects_sentinel_ratio(self) -> None:
        asset = load_asset(_png_bytes(10, 10))
        with self.assertRaises(InvalidRatio):
            normalize_asset(asset, AspectRatio.MATCH_REFERENCE)

    def test_load_asset_rejects_non_images(self) -> None:
        with self.assertRaises(InvalidDimensions):
            load_asset(b"not an image")


if __name__ == "__main__":
    unittest.main()
