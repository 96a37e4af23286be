"""Art-direction instructions sent alongside the source image for prompt synthesis."""

from __future__ import annotations

from typing import Dict

from .contracts import (
    CameraPerspective,
    GenerationParameters,
    InteriorMaterial,
    InteriorParameters,
    InteriorStyle,
    LightingStyle,
    PortraitEnvironment,
    PortraitParameters,
    PortraitVibe,
    ProductParameters,
)


FALLBACK_PROMPT = "A high quality professional transformation."

LIGHTING_DETAILS: Dict[LightingStyle, str] = {
    LightingStyle.STUDIO: "Even, controlled lighting. Minimal shadows. Perfect for e-commerce.",
    LightingStyle.NATURAL: "Mimics sunlight. Soft shadows. Good for lifestyle and organic products.",
    LightingStyle.CINEMATIC: "High contrast, dramatic shadows, moody atmosphere. Adds mystery.",
    LightingStyle.NEON: "Cyberpunk style with colored rim lights (Blue/Pink). Tech & Gaming.",
    LightingStyle.MINIMALIST: "Very soft, diffused light. High-key white/grey background feel.",
    LightingStyle.PRODUCT_BOOST: "Punchy, high key lighting designed specifically to make colors pop.",
}

PERSPECTIVE_DETAILS: Dict[CameraPerspective, str] = {
    CameraPerspective.FRONT: "Directly facing the subject. Standard listing shot.",
    CameraPerspective.ISOMETRIC: "3/4 view from above. Gives a 3D technical feel.",
    CameraPerspective.TOP_DOWN: "Flat lay, directly from above (90 degrees).",
    CameraPerspective.LOW_ANGLE: "Worm eye view, looking up at product. Heroic scale.",
    CameraPerspective.HIGH_ANGLE: "Looking down slightly (45 degrees). Shows depth.",
    CameraPerspective.CLOSE_UP: "Macro shot focusing on texture and details.",
    CameraPerspective.WIDE_ANGLE: "Wide angle lens, dynamic perspective.",
    CameraPerspective.DUTCH: "Tilted camera for a dynamic, edgy, and energetic look.",
}

PORTRAIT_ENV_DETAILS: Dict[PortraitEnvironment, str] = {
    PortraitEnvironment.OFFICE: "Modern Office: Clean, professional workspace background with soft depth of field.",
    PortraitEnvironment.CAFE: "Cozy Cafe: Warm, ambient lighting with blurred coffee shop details. Casual & inviting.",
    PortraitEnvironment.NATURE: "Nature: Natural outdoor setting with greenery and dappled sunlight.",
    PortraitEnvironment.URBAN: "Urban Street: City streets, concrete textures, and dynamic urban energy.",
    PortraitEnvironment.STUDIO_GREY: "Studio Grey: Classic neutral grey backdrop for pure focus on the subject.",
    PortraitEnvironment.LUXURY: "Luxury Hotel: High-end lobby aesthetic with warm lights, wood, and rich textures.",
    PortraitEnvironment.BEACH: "Sunset Beach: Bright, airy coastal vibe with warm sand and sky tones.",
}

PORTRAIT_VIBE_DETAILS: Dict[PortraitVibe, str] = {
    PortraitVibe.PROFESSIONAL: "Professional: Even, flattering lighting suitable for LinkedIn, CVs, and Corporate.",
    PortraitVibe.CANDID: "Candid & Soft: Soft, natural light that feels unposed, authentic and friendly.",
    PortraitVibe.DRAMATIC: "Dramatic: High contrast shadows and highlights for a moody, artistic look.",
    PortraitVibe.GOLDEN_HOUR: "Golden Hour: Warm, orange-hued lighting simulating sunset. Very flattering.",
    PortraitVibe.BW: "Black & White: Artistic monochromatic processing with strong contrast and timeless feel.",
}

INTERIOR_STYLE_DETAILS: Dict[InteriorStyle, str] = {
    InteriorStyle.MINIMALIST: "Minimalist: Clean lines, decluttered spaces, and monochromatic palettes.",
    InteriorStyle.INDUSTRIAL: "Industrial: Raw elements like exposed brick, metal, and concrete. Loft vibes.",
    InteriorStyle.SCANDINAVIAN: "Scandinavian: Bright, airy, functional with warm wood and white tones. Japandi.",
    InteriorStyle.MID_CENTURY: "Mid-Century: Retro aesthetic with organic curves, teak wood, and olive greens.",
    InteriorStyle.BOHEMIAN: "Bohemian: Eclectic, layered textures, plants, rugs, and relaxed vibes.",
    InteriorStyle.LUXURY_CLASSIC: "Luxury Classic: Ornate details, moldings, chandeliers, and sophisticated elegance.",
}

INTERIOR_MATERIAL_DETAILS: Dict[InteriorMaterial, str] = {
    InteriorMaterial.WOOD_WHITE: "Wood & White: Warm oak or walnut paired with crisp white surfaces.",
    InteriorMaterial.CONCRETE_METAL: "Concrete & Metal: Urban, raw textures using grey concrete and black steel.",
    InteriorMaterial.VELVET_GOLD: "Velvet & Gold: Soft, plush fabrics accented with metallic gold finishes.",
    InteriorMaterial.EARTH_TONES: "Earth Tones: Beige, terracotta, linen, and olive greens for a grounded feel.",
    InteriorMaterial.MARBLE_GLASS: "Marble & Glass: Sleek, reflective surfaces denoting high-end luxury.",
    InteriorMaterial.COLORFUL: "Vibrant: Bold, vibrant color combinations for a playful and energetic look.",
}


def _product_instruction(params: ProductParameters) -> str:
    if params.lighting is LightingStyle.MATCH_REFERENCE:
        lighting = (
            "ANALYZE carefully the Input Image's lighting direction and shadows. "
            "The generated background must match this lighting direction perfectly."
        )
    elif params.lighting in LIGHTING_DETAILS:
        lighting = f"{params.lighting.value} ({LIGHTING_DETAILS[params.lighting]})"
    else:
        lighting = params.lighting.value

    if params.perspective is CameraPerspective.MATCH_REFERENCE:
        perspective = "MATCH INPUT IMAGE PERSPECTIVE"
    elif params.perspective in PERSPECTIVE_DETAILS:
        perspective = f"{params.perspective.value} ({PERSPECTIVE_DETAILS[params.perspective]})"
    else:
        perspective = params.perspective.value

    lines = [
        "You are an expert commercial art director. "
        "Write a descriptive image generation prompt to restyle a product photo.",
        "Attributes:",
        f"- Lighting: {lighting}",
        f"- Perspective: {perspective}",
        f"- Color Strategy: {params.color_theory.value}",
        "Instructions:",
        "1. ANALYZE the attached Product Image.",
        "2. Describe the scene, lighting, and mood.",
        '3. CRITICAL: Start with "Preserve the exact details, shape, and text of the primary product."',
    ]
    if params.uses_references:
        lines.append(
            "4. Use the attached additional images as STYLE REFERENCES "
            f"(Tactic: {params.reference_tactic.value})."
        )
    return "\n".join(lines)


def _portrait_instruction(params: PortraitParameters) -> str:
    env = PORTRAIT_ENV_DETAILS.get(params.environment, params.environment.value)
    vibe = PORTRAIT_VIBE_DETAILS.get(params.vibe, params.vibe.value)
    return (
        f"Expert portrait photographer instructions: Describe a scene for '{env}' with '{vibe}' lighting. "
        'Start with "Preserve the exact facial features, skin tone, hair, and identity of the person."'
    )


def _interior_instruction(params: InteriorParameters) -> str:
    style = INTERIOR_STYLE_DETAILS.get(params.style, params.style.value)
    material = INTERIOR_MATERIAL_DETAILS.get(params.material, params.material.value)
    return (
        f"Interior designer instructions: Redecorate a room in '{style}' style using '{material}'. "
        'Start with "Preserve the exact structural perspective, walls, floor plan, and window placements."'
    )


def build_instruction(params: GenerationParameters) -> str:
    if isinstance(params, ProductParameters):
        return _product_instruction(params)
    if isinstance(params, PortraitParameters):
        return _portrait_instruction(params)
    if isinstance(params, InteriorParameters):
        return _interior_instruction(params)
    raise TypeError(f"Unsupported parameters type: {type(params).__name__}")
