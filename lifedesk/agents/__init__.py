# =============================================================================
# Agents Package — LangGraph Chat Pipeline
# =============================================================================
#   - orchestrator.py: LangGraph graph for one chat turn (save question →
#     retrieve → generate or canned reply → save answer), chat history
#   - assistant.py: prompt template, single completion call, mapping of
#     provider errors to user-facing text
# =============================================================================
