# monster_arena/content/__init__.py
