"""
agent - Conversational agent orchestration layer.

Contains the workshop tools, the system prompt, the transcript, the model
session and the turn orchestrator that runs the LLM+tool loop.
Depends on domain/ and application/. Never imports from infrastructure/.
"""
