"""Exceptions raised at the engine boundary."""


class EngineError(Exception):
    """Base class for all errors raised by the AI engine."""


class InvalidMove(EngineError, ValueError):
    """A value that is not rock, paper or scissors was given as a move."""

    def __init__(self, move):
        self.move = move
        super().__init__(f"Invalid move: {move!r}")


class InvalidDifficulty(EngineError, ValueError):
    """The requested AI tier is not easy, medium or hard."""

    def __init__(self, difficulty):
        self.difficulty = difficulty
        super().__init__(f"Invalid AI difficulty: {difficulty!r}")


class InvalidResult(EngineError, ValueError):
    """A round result other than win, lose or tie was reported."""

    def __init__(self, result):
        self.result = result
        super().__init__(f"Invalid round result: {result!r}")
