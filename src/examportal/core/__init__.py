"""Core business logic module.

Modules:
- models: Exam, Question, Attempt, AnswerRecord, ScoreSummary
- errors: NotFoundError, InvalidStateError, ValidationError
- scoring: pure scoring functions
- registry: start resolution and retake policy
- lifecycle: attempt state machine (start, record_answer, submit)
- expiry: time-limit enforcement and sweep
- results: read-side results and available exams
"""

__all__ = [
    "models",
    "errors",
    "scoring",
    "registry",
    "lifecycle",
    "expiry",
    "results",
]
