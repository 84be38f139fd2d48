# =============================================================================
# LifeDesk — Personal Productivity Assistant
# =============================================================================
# A personal productivity API (chat assistant, to-do list, calendar, notes,
# goals/habits, finance tracker, document upload) over a relational
# database, a file storage area, and a hosted LLM.
#
# Package structure:
#   lifedesk/
#   ├── api/          → FastAPI route handlers, one router per domain
#   ├── agents/       → LangGraph RAG chat pipeline and answer generation
#   ├── db/           → Database engine, session, and ORM models
#   ├── models/       → Pydantic V2 request/response schemas
#   └── services/     → Business logic (embedding, retrieval, parsing,
#                        storage, LLM providers, domain statistics)
# =============================================================================
