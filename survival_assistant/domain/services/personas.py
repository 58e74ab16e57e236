"""Persona tone strings.

A persona only ever changes wording: the fallback prefix, the generative
instruction paragraph and a recommendation note. It never changes which
documents are consulted.
"""

from __future__ import annotations

from survival_assistant.domain.models import Persona

PERSONA_PREFIXES: dict[Persona, str] = {
    Persona.NEWBIE: "Welcome to Bangalore! Here's what you need to know: ",
    Persona.STUDENT: "Hey! Quick tip: ",
    Persona.IT_PROFESSIONAL: "Here's the info: ",
    Persona.TOURIST: "Great question! As a visitor, you'll find this helpful: ",
}

PERSONA_INSTRUCTIONS: dict[Persona, str] = {
    Persona.NEWBIE: (
        "Use a friendly, reassuring tone with detailed explanations. The user is new to "
        "Bangalore and may not be familiar with local customs, places, or terminology. "
        "Be patient and thorough."
    ),
    Persona.STUDENT: (
        "Use a casual, practical tone. Focus on budget-friendly options and "
        "student-relevant information. Be relatable and mention affordable alternatives."
    ),
    Persona.IT_PROFESSIONAL: (
        "Be concise and efficient. Focus on time-saving tips and practical solutions. "
        "The user values their time, so get to the point quickly while being helpful."
    ),
    Persona.TOURIST: (
        "Be descriptive and culturally explanatory. Highlight must-see experiences and "
        "local specialties. Help them appreciate the unique aspects of Bangalore culture."
    ),
}


def parse_persona(value: str | Persona | None) -> Persona | None:
    """Return the Persona for ``value`` (None -> default), or None if unknown."""
    if value is None:
        return Persona.NEWBIE
    if isinstance(value, Persona):
        return value
    try:
        return Persona(value.strip().lower())
    except ValueError:
        return None


def persona_prefix(persona: Persona) -> str:
    return PERSONA_PREFIXES.get(persona, "")


def persona_instruction(persona: Persona) -> str:
    return PERSONA_INSTRUCTIONS[persona]


def persona_recommendation_note(persona: Persona, price_range: str = "") -> str:
    if persona is Persona.NEWBIE:
        return "This is a safe and popular choice for newcomers"
    if persona is Persona.STUDENT:
        return "Budget-friendly option" if "50-150" in price_range else ""
    if persona is Persona.IT_PROFESSIONAL:
        return "Quick and convenient for busy schedules"
    if persona is Persona.TOURIST:
        return "A must-try local experience"
    return ""
