# monster_arena/engine/__init__.py
