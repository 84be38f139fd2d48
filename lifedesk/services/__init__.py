# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Kept separate from the HTTP handlers:
#   - embedder.py: hash pseudo-embedding (default) or OpenAI-compatible API
#   - retrieval.py: document storage and brute-force cosine similarity scan
#   - llm.py: LLM provider protocol (OpenAI-compatible/Gemini, Anthropic)
#   - parser.py: text extraction (Docling for PDF/DOCX, UTF-8 for text)
#   - storage.py: uploaded file storage on the local filesystem
#   - tokens.py: tiktoken counting and truncation
#   - stats.py: goal progress, note tags, finance summaries, dashboard
# =============================================================================
