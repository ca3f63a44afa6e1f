"""
Pairs core Python package.

Pure game logic for the memory-matching ("pairs") game, kept free of any UI so it can be
driven by the Flask app, a test, or any other front end.
Modules:
- board.py: Card, CardState, Board
- deal.py: shuffled pair generation
- engine.py: MatchEngine (reveal/compare/resolve, save and restore)
- events.py: BoardBuilt, CardRevealed, PairResolved, GameOver and the EventBus
- record.py: SaveRecord and its JSON codec
- scheduler.py: cancellable deferred callbacks
- store.py: key/value persistence (memory, SQLite)
- config.py, errors.py
"""
