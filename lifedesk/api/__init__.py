# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# One APIRouter per feature:
#   - chat.py: RAG chat and chat history
#   - documents.py: upload, text documents, list, search, delete
#   - todos.py, events.py, notes.py: productivity CRUD
#   - goals.py: goals (progress) and habits (streak tracking)
#   - finance.py: transactions and monthly summary
#   - dashboard.py: cross-table stats and recent activity
# =============================================================================
