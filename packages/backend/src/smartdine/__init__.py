"""SmartDine — restaurant ordering and reservation backend.

Menu, orders, reservations, reviews and feedback, with real-time
notifications over WebSockets and an AI assistant (chat, recommendations,
sentiment) proxied to an OpenAI-compatible completion API.
"""

__version__ = "0.1.0"
