"""Minimal demonstration of a single chat turn against a local server."""

from chat_core import initialize
from chat_core.domain.exceptions import BusinessError

if __name__ == "__main__":
    session = initialize()
    if not session.check_connection():
        print("Cannot connect to Ollama. Start it with: ollama serve")
        raise SystemExit(1)
    print("Models:", ", ".join(session.list_models()) or "(none)")
    question = "Explain what a Python generator is in two sentences."
    try:
        reply = session.send(question)
    except BusinessError as e:
        print("Error:", e.message)
        raise SystemExit(1)
    print("User:", question)
    print("Assistant:", reply)
