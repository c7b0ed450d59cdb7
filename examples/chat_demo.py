"""Minimal demonstration of a simulated chat session."""

from aipipe_agent import Session
from aipipe_agent.domain.models import SessionConfig

if __name__ == "__main__":
    session = Session(SessionConfig(provider_kind="simulated"))
    for question in ("search for rust ownership", "calculate fibonacci", "what can you do"):
        outcome = session.send(question)
        print("User:", question)
        for message in outcome.messages:
            print(f"[{message.role}]", message.content)
        print()
