"""
System prompts, the per-request context block and the new-chat texts.
"""

# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = """You are Lightroom Classic Coach. Answer Lightroom questions and execute photo edits.

For EDIT requests (brighten, adjust, enhance, etc.), return ONLY JSON:
{"action":"apply_develop_settings","params":{"exposure":0.5}}

Available params: exposure, contrast, highlights, shadows, whites, blacks, clarity, texture, dehaze,
vibrance, saturation, temperature, tint, sharpness, luminanceNoise, colorNoise, vignetteAmount, grainAmount,
toneCurveHighlights, toneCurveLights, toneCurveDarks, toneCurveShadows,
hue<Color>, sat<Color>, lum<Color> (Color = Red, Orange, Yellow, Green, Aqua, Blue, Purple, Magenta)

Value ranges: exposure -5..+5; most sliders -100..+100; temperature is a -100..+100 nudge
(warmer is positive); tint -150..+150.

For QUESTIONS (How/Where/What), give concise text answers. Only Lightroom Classic topics."""


# ---------------------------------------------------------------------------
# Vision
# ---------------------------------------------------------------------------

VISION_SYSTEM_PROMPT = """You are a professional photography coach and photo editor.
Analyze the provided image for Composition, Exposure, Color, and Subject.
Critique the photo constructively.

Then, provide a JSON object with specific edits to improve the photo.
Include settings for: Basic (Exposure, Contrast, etc.), Tone Curve, Presence (Clarity, Dehaze), Vignette, and Crop if needed.

Format your response exactly like this:
[Critique text here...]

```json
{
  "action": "apply_develop_settings",
  "params": {
    "exposure": 0.0,
    "contrast": 0,
    ... other settings ...
  }
}
```"""

VISION_USER_TEXT = "Analyze this photo and suggest edits."


# ---------------------------------------------------------------------------
# New chat
# ---------------------------------------------------------------------------

WELCOME_TEXT = (
    "Hi! I'm your Lightroom Classic coach. Ask me how a tool works, "
    "or tell me what to change and I'll apply it to the selected photos."
)

SUGGESTIONS = [
    "How do I adjust white balance?",
    "Explain the tone curve controls",
    "Brighten this photo by +0.5 exposure",
    "How do I use masks?",
]


def format_context_block(context: dict, include_white_balance: bool = False) -> str:
    """Context appended to the latest user turn only."""
    context = context or {}
    block = "\n\nCurrent Context:\n- Module: {}\n- Selected Photos: {}".format(
        context.get("active_module_name") or "Unknown",
        int(context.get("selected_count") or 0),
    )
    if include_white_balance:
        mode = context.get("white_balance_mode") or "slider"
        block += f"\n- White Balance Mode: {mode}"
        if context.get("current_temperature") is not None:
            block += f"\n- Current Temperature: {context['current_temperature']}"
        if context.get("current_tint") is not None:
            block += f"\n- Current Tint: {context['current_tint']}"
    return block


def build_chat_turns(history: list, context: dict) -> list[dict]:
    """Copy of ``history`` with the context block on the last user turn."""
    turns = [dict(turn) for turn in history]
    for turn in reversed(turns):
        if turn.get("role") == "user":
            turn["text"] = turn.get("text", "") + format_context_block(context)
            break
    return turns
