"""Restaurant assistant — chat, recommendations, sentiment.

Learn: Every call to the completion provider goes through the
ModelFallbackClient, because the configured model is a human-friendly
name ("Llama 3.1 70B") rather than the provider's exact id
("llama-3.1-70b"). The client guesses spellings until one is accepted.

Chat answers are streamed back to the browser as server-sent events by
the relay in ai.streaming.
"""
