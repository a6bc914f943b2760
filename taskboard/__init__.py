# Taskboard: task collection state, filtering, statistics and data services
#
# Components:
#   schema.py    - Data model (Task, Category, Priority) and wire-form mapping
#   dates.py     - Due-date parsing and day-level comparisons
#   services.py  - Data services (in-memory and remote record API)
#   store.py     - Copy-on-write task store
#   filters.py   - Status filter and text search
#   stats.py     - Board statistics
#   validator.py - Task form validation and tag normalization
#   editor.py    - Editing session state machine
#   board.py     - Session controller tying the above together
#   config.py    - YAML / environment configuration
