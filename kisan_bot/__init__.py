"""
Kisan Weather Bot - Core Modules Package

Modules:
    - config: Environment-driven settings
    - directory: In-memory per-user state (subscription, language, farm log)
    - weather: OpenWeatherMap lookup and alert thresholds
    - llm_manager: Gemini text generation
    - advisory: AI crop advice from weather
    - translation: Reply translation (English/Hindi/Marathi)
    - whatsapp: Twilio WhatsApp messaging
    - voice: Voice-note pipeline (speech → answer → speech)
    - dispatcher: Inbound command handling
    - alerts: Scheduled alert and reminder sweeps
"""

__version__ = "1.0.0"
__author__ = "Kisan Bot Team"
__description__ = "WhatsApp weather alerts and crop advice for farmers"

from . import config
from . import directory
from . import weather
from . import llm_manager
from . import advisory
from . import translation
from . import whatsapp
from . import voice
from . import dispatcher
from . import alerts

__all__ = [
    'config',
    'directory',
    'weather',
    'llm_manager',
    'advisory',
    'translation',
    'whatsapp',
    'voice',
    'dispatcher',
    'alerts',
]
