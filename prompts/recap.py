"""
Recap prompt for summarizing a window of conversation.

The conversation itself follows this directive as separate role-tagged
messages, oldest first.
"""

RECAP_SYSTEM_PROMPT = """Summarize the conversation into 1-2 short paragraphs focusing on:
- relationship context (PG-13)
- user preferences
- notable moments
Avoid sensitive personal data unless clearly provided and relevant.
"""
