from agents.response_evaluator import (
    FEEDBACK_BANDS,
    NEEDS_DEPTH_FEEDBACK,
    TOO_BRIEF_FEEDBACK,
    AnswerEvaluator,
    _round_half_up,
    count_keywords,
    score_locally,
)
from agents.types import Question
from config.registry import EVAL_KEY, bind_model

REACT_Q = Question(text="How does React update the UI?", difficulty="easy", topic="react", generated_by="template")
GENERAL_Q = Question(text="How would you scale this?", difficulty="hard", topic="general", generated_by="template")


def test_components_and_state_answer():
    text = "It uses components and manages state to build the UI"
    result = score_locally(text, REACT_Q)

    assert result.keywords.high >= 2
    # 2 high-tier hits (6) plus a 0.52 length bonus
    assert result.score == 7
    assert result.feedback == FEEDBACK_BANDS[1][1]
    assert result.generated_by == "fallback"


def test_five_character_answer_is_too_brief():
    result = score_locally("hooks", REACT_Q)
    assert result.score == 2
    assert result.feedback == TOO_BRIEF_FEEDBACK
    assert (result.keywords.high, result.keywords.medium, result.keywords.low) == (0, 0, 0)


def test_brief_check_uses_trimmed_length():
    result = score_locally("   state    ", REACT_Q)
    assert result.feedback == TOO_BRIEF_FEEDBACK


def test_keywords_counted_once_case_insensitive():
    counts = count_keywords("STATE state State and Props", {"high": ["state", "props"], "medium": [], "low": []})
    assert counts.high == 2


def test_length_bonus_caps_at_two():
    result = score_locally("a" * 500, GENERAL_Q)
    assert result.score == 2
    assert result.feedback == NEEDS_DEPTH_FEEDBACK


def test_feedback_band_uses_unrounded_total():
    table = {"general": {"high": ["alpha"], "medium": [], "low": ["beta"]}}
    text = "alpha beta " + "z" * 185
    result = score_locally(text, GENERAL_Q, table)
    # 4 keyword points + 1.96 bonus rounds to 6 but stays in the 4..6 band
    assert result.score == 6
    assert result.feedback == FEEDBACK_BANDS[2][1]


def test_unknown_topic_table_uses_general():
    table = {"general": {"high": ["alpha"], "medium": [], "low": []}}
    result = score_locally("alpha alpha alpha", REACT_Q, table)
    assert result.keywords.high == 1


def test_table_without_topic_or_general_uses_builtin_general():
    text = "We would scale it with caching, testing and a clear architecture."
    table = {"vue": {"high": ["directive"], "medium": [], "low": []}}
    assert score_locally(text, REACT_Q, table) == score_locally(text, GENERAL_Q)


def test_score_is_clamped_to_ten():
    text = "component state props jsx hook virtual dom lifecycle context render update"
    result = score_locally(text, REACT_Q)
    assert result.score == 10


def test_round_half_up():
    assert _round_half_up(2.5) == 3
    assert _round_half_up(6.49) == 6
    assert _round_half_up(0.5) == 1


def test_local_scoring_is_deterministic():
    text = "Closures capture scope; promises chain asynchronous callbacks."
    question = Question(text="Explain closures", difficulty="medium", topic="javascript", generated_by="template")
    assert score_locally(text, question) == score_locally(text, question)


def test_remote_score_clamped_and_rounded():
    bind_model(EVAL_KEY, lambda **_: {"score": 14.6, "feedback": "Great depth."})
    result = AnswerEvaluator().evaluate("A long enough answer about state.", REACT_Q)
    assert result.score == 10
    assert result.generated_by == "remote"

    bind_model(EVAL_KEY, lambda **_: {"score": -3, "feedback": "Off topic."})
    assert AnswerEvaluator().evaluate("A long enough answer about state.", REACT_Q).score == 0

    bind_model(EVAL_KEY, lambda **_: {"score": 6.5, "feedback": "Fine."})
    assert AnswerEvaluator().evaluate("A long enough answer about state.", REACT_Q).score == 7


def test_remote_failure_falls_back_locally(failing_models):
    text = "It uses components and manages state to build the UI"
    result = AnswerEvaluator().evaluate(text, REACT_Q)
    assert result.generated_by == "fallback"
    assert result.score == 7


def test_remote_bad_schema_falls_back_locally():
    bind_model(EVAL_KEY, lambda **_: {"unexpected": True})
    result = AnswerEvaluator().evaluate("hooks", REACT_Q)
    assert result.generated_by == "fallback"
    assert result.feedback == TOO_BRIEF_FEEDBACK


def test_injected_remote_callable():
    evaluator = AnswerEvaluator(remote=lambda text, question: score_locally("hooks", question))
    assert evaluator.evaluate("anything long enough here", REACT_Q).score == 2


def test_remote_feedback_kept_in_full():
    feedback = "Solid grasp of reconciliation. " * 20
    bind_model(EVAL_KEY, lambda **_: {"score": 8, "feedback": feedback})
    result = AnswerEvaluator().evaluate("A long enough answer about state.", REACT_Q)
    assert result.feedback == feedback.strip()
