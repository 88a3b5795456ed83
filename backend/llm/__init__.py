"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Call Groq in JSON mode, either once or as a stream of chunks.
- Parse the (possibly partial) JSON into caterer match payloads.
- Surface every failure as a typed ``GenerationFailure``.
"""
