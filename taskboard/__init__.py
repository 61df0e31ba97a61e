# Taskboard: boards, columns and tasks with local persistence
#
# Components:
#   schema.py   - Data model (Board, Column, Task, TaskStatus)
#   storage.py  - Key-value persistence (SQLite, in-memory)
#   state.py    - Board state manager: CRUD, ordering, current board
#   auth.py     - Admin session and password change flow
#   config.py   - YAML configuration
#   cli.py      - Terminal front-end
