"""
Static guidance payloads.

Used whenever AI analysis is unavailable so the save workflow never blocks.
"""

from screendiary.core.schemas import AnalysisResult

# Server reached but analysis failed and no fallback was sent
SERVICE_FALLBACK = AnalysisResult(
    analysis="Unable to generate AI analysis at this time.",
    suggestions=["Try again later", "Continue tracking your usage"],
    micro_habits=["Stay mindful of your screen time"],
    motivational_tip="You're doing great by being aware of your digital habits!",
    is_fallback=True,
)

# Server unreachable
CONNECTION_FALLBACK = AnalysisResult(
    analysis="Unable to connect to AI service. Here are some general tips:",
    suggestions=[
        "Set specific time limits for your most used apps",
        "Practice mindful scrolling by asking 'Why am I opening this app?'",
        "Create device-free zones in your home",
    ],
    micro_habits=[
        "Take a deep breath before unlocking your phone",
        "Set your phone to grayscale mode to reduce visual appeal",
    ],
    motivational_tip="Every moment of awareness is progress. You're building healthier digital habits!",
    is_fallback=True,
)

# Sent by the server alongside a 503 when the provider fails
PROVIDER_FALLBACK = AnalysisResult(
    analysis=(
        "AI analysis is unavailable right now, but logging your usage "
        "is already a step towards mindful technology use."
    ),
    suggestions=[
        "Set specific time limits for your most used apps",
        "Turn off non-essential notifications",
        "Schedule short screen-free breaks during the day",
    ],
    micro_habits=[
        "Keep your phone out of reach for the first 30 minutes after waking",
        "Pause for one breath before opening a social app",
    ],
    motivational_tip="Small, consistent changes add up. Keep tracking!",
    is_fallback=True,
)
