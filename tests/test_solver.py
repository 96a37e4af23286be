import pathlib
import sys
import unittest

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "scripts"))
from restyle_image_api.core.contracts import (
    AspectRatio,
    CameraPerspective,
    ColorTheory,
    ConcreteRatio,
    ImageAsset,
    InteriorMaterial,
    InteriorParameters,
    InteriorStyle,
    LightingStyle,
    Mode,
    PortraitEnvironment,
    PortraitParameters,
    PortraitVibe,
    ProductParameters,
    ReferenceTactic,
)
from restyle_image_api.core.errors import ErrorKind, InvalidSelection
from restyle_image_api.core.prompts import (
    INTERIOR_STYLE_DETAILS,
    PORTRAIT_ENV_DETAILS,
    build_instruction,
)
from restyle_image_api.core.solver import coerce_choice, normalize_mode, resolve_parameters, selections_of

REFERENCE = ImageAsset(data=b"ref", mime_type="image/png", width=4, height=3)


class TestResolveParameters(unittest.TestCase):
    def test_product_defaults(self) -> None:
        params = resolve_parameters("product")
        self.assertIsInstance(params, ProductParameters)
        self.assertIs(params.ratio, AspectRatio.SQUARE)
        self.assertIs(params.lighting, LightingStyle.STUDIO)
        self.assertIs(params.perspective, CameraPerspective.FRONT)
        self.assertIs(params.color_theory, ColorTheory.AUTO)
        self.assertIs(params.reference_tactic, ReferenceTactic.FULL)
        self.assertEqual(params.references, ())

    def test_portrait_and_interior_defaults(self) -> None:
        portrait = resolve_parameters(Mode.PORTRAIT)
        self.assertIsInstance(portrait, PortraitParameters)
        self.assertIs(portrait.environment, PortraitEnvironment.OFFICE)
        self.assertIs(portrait.vibe, PortraitVibe.PROFESSIONAL)
        interior = resolve_parameters("interior")
        self.assertIsInstance(interior, InteriorParameters)
        self.assertIs(interior.style, InteriorStyle.MINIMALIST)
        self.assertIs(interior.material, InteriorMaterial.WOOD_WHITE)

    def test_complete_mimicry_overrides_explicit_lighting(self) -> None:
        params = resolve_parameters(
            "product",
            {"lighting": "Cinematic & Moody", "perspective": "Isometric View"},
            [REFERENCE],
        )
        self.assertIs(params.lighting, LightingStyle.MATCH_REFERENCE)
        self.assertIs(params.perspective, CameraPerspective.MATCH_REFERENCE)
        self.assertEqual(params.references, (REFERENCE,))
        self.assertTrue(params.uses_references)

    def test_mimicry_without_reference_keeps_selection(self) -> None:
        params = resolve_parameters("product", {"lighting": "Cinematic & Moody"})
        self.assertIs(params.lighting, LightingStyle.CINEMATIC)
        self.assertFalse(params.uses_references)

    def test_partial_tactic_keeps_lighting(self) -> None:
        params = resolve_parameters(
            "product",
            {"lighting": "neon", "tactic": "Visual Style (Colors/Textures)"},
            [REFERENCE],
        )
        self.assertIs(params.lighting, LightingStyle.NEON)
        self.assertIs(params.reference_tactic, ReferenceTactic.STYLE)
        self.assertEqual(params.references, (REFERENCE,))

    def test_ignore_tactic_drops_references(self) -> None:
        params = resolve_parameters(
            "product",
            {"lighting": "Cinematic & Moody", "reference_tactic": ReferenceTactic.IGNORE},
            [REFERENCE],
        )
        self.assertEqual(params.references, ())
        self.assertIs(params.lighting, LightingStyle.CINEMATIC)
        self.assertFalse(params.uses_references)

    def test_use_reference_flag_forces_ignore(self) -> None:
        params = resolve_parameters("product", {"use_reference": False}, [REFERENCE])
        self.assertIs(params.reference_tactic, ReferenceTactic.IGNORE)
        self.assertEqual(params.references, ())

    def test_other_modes_never_carry_references(self) -> None:
        params = resolve_parameters("portrait", {"vibe": "golden hour"}, [REFERENCE])
        self.assertIs(params.vibe, PortraitVibe.GOLDEN_HOUR)
        self.assertFalse(hasattr(params, "references"))

    def test_aliases_and_slugs(self) -> None:
        params = resolve_parameters("studio", {"angle": "isometric", "color": "triadic"})
        self.assertIs(params.perspective, CameraPerspective.ISOMETRIC)
        self.assertIs(params.color_theory, ColorTheory.TRIADIC)

    def test_ratio_selection(self) -> None:
        self.assertIs(resolve_parameters("interior", {"ratio": "match"}).ratio, AspectRatio.MATCH_REFERENCE)
        self.assertIs(resolve_parameters("interior", {"ratio": "16:9"}).ratio, AspectRatio.WIDE)
        self.assertEqual(resolve_parameters("interior", {"ratio": "2:3"}).ratio, ConcreteRatio(2, 3))

    def test_resolution_is_idempotent(self) -> None:
        first = resolve_parameters("product", {"lighting": "natural", "ratio": "4:3"}, [REFERENCE])
        second = resolve_parameters("product", selections_of(first), [REFERENCE])
        self.assertEqual(first, second)
        portrait = resolve_parameters("portrait", {"environment": "cafe"})
        self.assertEqual(resolve_parameters("portrait", selections_of(portrait)), portrait)

    def test_unknown_option_for_mode(self) -> None:
        with self.assertRaises(InvalidSelection):
            resolve_parameters("portrait", {"lighting": "Studio Lighting"})

    def test_unknown_value(self) -> None:
        with self.assertRaises(InvalidSelection) as ctx:
            resolve_parameters("product", {"lighting": "Disco"})
        self.assertIn("Studio Lighting", str(ctx.exception))
        self.assertIs(ctx.exception.kind, ErrorKind.INVALID_SELECTION)

    def test_mode_mismatch(self) -> None:
        with self.assertRaises(InvalidSelection):
            resolve_parameters("product", {"mode": "interior"})

    def test_unknown_mode(self) -> None:
        with self.assertRaises(InvalidSelection):
            normalize_mode("automotive")

    def test_coerce_choice_accepts_members_and_names(self) -> None:
        self.assertIs(coerce_choice(InteriorStyle, InteriorStyle.BOHEMIAN), InteriorStyle.BOHEMIAN)
        self.assertIs(coerce_choice(InteriorStyle, "Mid-Century Modern"), InteriorStyle.MID_CENTURY)
        self.assertIs(coerce_choice(InteriorStyle, "luxury_classic"), InteriorStyle.LUXURY_CLASSIC)


class TestBuildInstruction(unittest.TestCase):
    def test_product_instruction_lists_attributes(self) -> None:
        text = build_instruction(ProductParameters())
        self.assertIn("Lighting: Studio Lighting", text)
        self.assertIn("Perspective: Front View", text)
        self.assertIn("Color Strategy: AI Auto-Select", text)
        self.assertIn("Preserve the exact details, shape, and text of the primary product.", text)
        self.assertNotIn("STYLE REFERENCES", text)

    def test_product_instruction_with_mimicry(self) -> None:
        params = resolve_parameters("product", {}, [REFERENCE])
        text = build_instruction(params)
        self.assertIn("ANALYZE carefully the Input Image's lighting", text)
        self.assertIn("MATCH INPUT IMAGE PERSPECTIVE", text)
        self.assertIn("Tactic: Complete Mimicry", text)

    def test_portrait_instruction(self) -> None:
        text = build_instruction(PortraitParameters())
        self.assertIn(PORTRAIT_ENV_DETAILS[PortraitEnvironment.OFFICE], text)
        self.assertIn("Preserve the exact facial features", text)

    def test_interior_instruction(self) -> None:
        text = build_instruction(InteriorParameters(style=InteriorStyle.INDUSTRIAL))
        self.assertIn(INTERIOR_STYLE_DETAILS[InteriorStyle.INDUSTRIAL], text)
        self.assertIn("window placements", text)


if __name__ == "__main__":
    unittest.main()
