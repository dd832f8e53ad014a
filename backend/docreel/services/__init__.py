"""
Services - business logic behind the HTTP routes

Organization:
    - segmentation/: text -> ordered chunks
    - parsing/: uploaded documents and LLM JSON responses
    - storage/: session store, job registries, export retention
    - llm/: script model providers (Gemini, Ollama)
    - pipeline/: script, video and export stages
    - use_cases/: HTTP-independent business operations
    - container.py: wiring and the shared instance
"""
