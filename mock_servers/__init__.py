"""
Mock servers for mobile client integration testing.

Available mocks:
- llm_server: OpenAI-compatible chat completion API (port 4097)
- opencode_server: OpenCode session backend API (port 4096)
"""

__version__ = "1.0.0"
