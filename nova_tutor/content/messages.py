"""
Nova Tutor v9.0 - Tutor Messages

Every fixed sentence the tutor says outside of generated steps, in English
and Spanish. Templates use str.format placeholders.
"""

MESSAGES: dict[str, dict[str, str]] = {
    # ─── Answers ─────────────────────────────────────────────────────────
    "correct": {
        "en": "Correct!",
        "es": "¡Correcto!",
    },
    "not_value": {
        "en": "It's not {value}. {hint}",
        "es": "No es {value}. {hint}",
    },
    "try_again": {
        "en": "Try again.",
        "es": "Intenta de nuevo.",
    },

    # ─── Remediation ─────────────────────────────────────────────────────
    "remediation_suggestion": {
        "en": "I see you need practice. I suggest reviewing: {topics}.",
        "es": "Veo que necesitas práctica. Te sugiero repasar: {topics}.",
    },
    "slow_down": {
        "en": "Let's slow down and take this one step at a time.",
        "es": "Vamos más despacio, un paso a la vez.",
    },

    # ─── Gates ───────────────────────────────────────────────────────────
    "higher_grade_topic": {
        "en": "{topic} is a topic for higher grades. Would you like to try something at your level?",
        "es": "{topic} es un tema para grados más avanzados. ¿Quieres intentar algo de tu nivel?",
    },
    "trial_limit": {
        "en": "Wow, you are so curious! 🌟 My trial energy ran out. "
              "Ask your parents to activate your account to keep learning together.",
        "es": "¡Wow, eres muy curioso! 🌟 Se me acabó la energía de prueba. "
              "Pide a tus papás que activen tu cuenta para seguir aprendiendo juntos.",
    },
    "voice_depleted": {
        "en": "⚡ Voice energy depleted for today. Using basic voice.",
        "es": "⚡ Energía de voz agotada por hoy. Usando voz básica.",
    },

    # ─── Problem intake ──────────────────────────────────────────────────
    "problem_intro": {
        "en": "Perfect. {reading}. Let's start.",
        "es": "Perfecto. {reading}. Empecemos.",
    },
    "need_numbers": {
        "en": "Got it, {topic}. What are the numbers?",
        "es": "Entendido, {topic}. ¿Cuáles son los números?",
    },
    "open_prompt": {
        "en": "I'm right here with you! Tell me the numbers and the operation, and we'll solve it together.",
        "es": "¡Aquí estoy contigo! Dime los números y la operación, y lo resolveremos juntos.",
    },
    "story_about": {
        "en": "Ah! It's a story about {object}. Let's organize it on the board.",
        "es": "¡Ah! Es una historia sobre {object}. Vamos a organizarlo en la pizarra.",
    },
    "problem_complete": {
        "en": "We finished this problem! Do you have another one?",
        "es": "¡Terminamos este problema! ¿Tienes otro?",
    },

    # ─── Greetings ───────────────────────────────────────────────────────
    "greeting_playful": {
        "en": "Hello my little genius {name}! 🌟 So happy to see you today! Let's play and learn magical things.",
        "es": "¡Hola mi pequeño genio {name}! 🌟 ¡Qué alegría verte hoy! Vamos a jugar y aprender cosas mágicas.",
    },
    "greeting_champion": {
        "en": "Hello champion {name}! 🚀 Ready for a new mission! What exercise do you have for today?",
        "es": "¡Hola campeón/a {name}! 🚀 ¡Listo para una nueva misión! ¿Qué ejercicio tienes para hoy?",
    },
    "greeting_partner": {
        "en": "Hi {name}! 👋 Great to see you. Where shall we start?",
        "es": "¡Hola {name}! 👋 Un gusto verte. ¿Con qué empezamos?",
    },
    "greeting_comeback": {
        "en": " Are you ready to master {topic} today? You were so close last time!",
        "es": " ¿Estás listo para dominar {topic} hoy? ¡La última vez estuviste muy cerca!",
    },
    "default_name": {
        "en": "Friend",
        "es": "Amigo",
    },
}

# Problem readings used in the intro ("7 plus 7")
OPERATION_WORDS: dict[str, dict[str, str]] = {
    "division": {"en": "divided by", "es": "entre"},
    "multiplication": {"en": "times", "es": "por"},
    "addition": {"en": "plus", "es": "más"},
    "subtraction": {"en": "minus", "es": "menos"},
}


def msg(key: str, language: str = "en", **kwargs) -> str:
    """Localized message. Falls back to English for a missing language."""
    variants = MESSAGES[key]
    template = variants.get(language, variants["en"])
    return template.format(**kwargs) if kwargs else template
