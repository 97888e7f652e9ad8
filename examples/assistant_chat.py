#!/usr/bin/env python3
"""
SmartDine assistant chat — a tiny REPL over the streaming endpoint.

Each question is POSTed to /ai/chat and the answer printed as the
server-sent events arrive. Errors before the first token come back as
JSON with a 5xx status; errors mid-answer arrive as an apology.

Run with: python examples/assistant_chat.py

Requires: pip install httpx
Backend needs SMARTDINE_GROQ_API_KEY and SMARTDINE_GROQ_MODEL.
"""

import json

import httpx

from _common import BASE, check_backend


def ask(client: httpx.Client, message: str) -> None:
    with client.stream("POST", "/ai/chat", json={"message": message}) as resp:
        if resp.status_code >= 400:
            resp.read()
            print(f"  ERROR {resp.status_code}: {resp.json().get('detail')}")
            return
        for line in resp.iter_lines():
            if not line.startswith("data: "):
                continue
            payload = line[len("data: "):]
            if payload == "[DONE]":
                break
            print(json.loads(payload)["content"], end="", flush=True)
    print()


def main():
    client = httpx.Client(base_url=BASE, timeout=60)
    print("Ask about the menu (empty line to quit).\n")
    while True:
        message = input("you> ").strip()
        if not message:
            break
        print("bot> ", end="")
        ask(client, message)


if __name__ == "__main__":
    check_backend()
    main()
