"""
Tests for the exam service against an in-memory SQLite database.
"""

import random

import pytest

from assessment.errors import (
    ExamNotConfigured, InsufficientQuestionPool, InvalidQuota,
    InvalidSubmissionReference, NoCourseOutcomes,
)
from assessment.schemas import AnswerEntry
from database import crud, models
from services import exam_service
from services.exam_service import (
    CourseNotFound, CourseNotPublished, EmptySubmission, ExamAlreadyTaken,
    QuestionNotOnPaper, StudentNotFound, SubmissionNotFound,
)


STOCKED = {"CO1": (3, 3), "CO2": (3, 3)}


class TestStartExam:

    def test_assembles_and_records_paper(self, db, make_course, make_student, questions_of):
        course = make_course(bank=STOCKED)
        student = make_student()

        attempt = exam_service.start_exam(db, student.id, course.id, rng=random.Random(1))

        assert len(attempt.phase1) == 2
        assert len(attempt.phase2) == 4
        weights = {q.id: q.weightage for q in questions_of(course.id)}
        assert all(weights[qid] == 1 for qid in attempt.phase1)
        assert all(weights[qid] == 2 for qid in attempt.phase2)
        assert crud.get_exam_attempt(db, student.id, course.id).id == attempt.id

    def test_second_start_returns_same_paper(self, db, make_course, make_student):
        course = make_course(bank=STOCKED)
        student = make_student()

        first = exam_service.start_exam(db, student.id, course.id, rng=random.Random(1))
        second = exam_service.start_exam(db, student.id, course.id, rng=random.Random(2))

        assert second.id == first.id
        assert second.phase1 == first.phase1 and second.phase2 == first.phase2

    def test_each_student_gets_own_paper(self, db, make_course, make_student):
        course = make_course(bank={"CO1": (10, 10), "CO2": (10, 10)})
        a = exam_service.start_exam(db, make_student().id, course.id, rng=random.Random(1))
        b = exam_service.start_exam(db, make_student().id, course.id, rng=random.Random(2))
        assert a.id != b.id
        assert db.query(models.ExamAttempt).count() == 2

    def test_paper_questions_follow_attempt_order(self, db, make_course, make_student):
        course = make_course(bank=STOCKED)
        attempt = exam_service.start_exam(db, make_student().id, course.id, rng=random.Random(4))

        phase1, phase2 = exam_service.paper_questions(db, attempt)
        assert [q.id for q in phase1] == attempt.phase1
        assert [q.id for q in phase2] == attempt.phase2

    def test_unknown_course(self, db):
        with pytest.raises(CourseNotFound):
            exam_service.start_exam(db, 1, 404)

    def test_draft_course_rejected(self, db, make_course, make_student):
        course = make_course(bank=STOCKED, is_draft=True)
        student = make_student()
        with pytest.raises(CourseNotPublished):
            exam_service.start_exam(db, student.id, course.id)
        assert crud.get_exam_attempt(db, student.id, course.id) is None

    def test_unknown_student(self, db, make_course):
        course = make_course(bank=STOCKED)
        with pytest.raises(StudentNotFound) as exc:
            exam_service.start_exam(db, 99999, course.id)
        assert exc.value.context == {"student_id": 99999}
        assert db.query(models.ExamAttempt).count() == 0

    def test_unconfigured_exam(self, db, make_course, make_student):
        course = make_course(exam_marks=None, bank=STOCKED)
        with pytest.raises(ExamNotConfigured):
            exam_service.start_exam(db, make_student().id, course.id)

    def test_no_course_outcomes(self, db, make_course, make_student):
        course = make_course(co_count=0)
        with pytest.raises(NoCourseOutcomes):
            exam_service.start_exam(db, make_student().id, course.id)

    def test_invalid_quota(self, db, make_course, make_student):
        course = make_course(exam_marks=5, exam_question_count=10, bank=STOCKED)
        with pytest.raises(InvalidQuota):
            exam_service.start_exam(db, make_student().id, course.id)

    def test_insufficient_pool_stores_nothing(self, db, make_course, make_student):
        course = make_course(bank={"CO1": (3, 3), "CO2": (1, 1)})
        student = make_student()
        with pytest.raises(InsufficientQuestionPool):
            exam_service.start_exam(db, student.id, course.id)
        assert crud.get_exam_attempt(db, student.id, course.id) is None

    def test_rejected_after_submission(self, db, make_course, make_student, questions_of):
        course = make_course(bank=STOCKED)
        student = make_student()
        q = questions_of(course.id)[0]
        exam_service.submit_exam(db, student.id, course.id, [AnswerEntry(question_id=q.id, selected_option="A")])

        with pytest.raises(ExamAlreadyTaken):
            exam_service.start_exam(db, student.id, course.id)


class TestSubmitExam:

    def test_stores_answers(self, db, make_course, make_student, questions_of):
        course = make_course(bank=STOCKED)
        student = make_student()
        qs = questions_of(course.id)[:3]

        stored = exam_service.submit_exam(
            db, student.id, course.id,
            [AnswerEntry(question_id=q.id, selected_option="b") for q in qs],
        )

        assert stored == 3
        rows = crud.get_submission(db, student.id, course.id)
        assert [r.selected_option for r in rows] == ["B", "B", "B"]
        assert not any(r.malpractice_flag for r in rows)

    def test_duplicate_question_keeps_last_selection(self, db, make_course, make_student, questions_of):
        course = make_course(bank=STOCKED)
        student = make_student()
        q = questions_of(course.id)[0]

        stored = exam_service.submit_exam(db, student.id, course.id, [
            AnswerEntry(question_id=q.id, selected_option="B"),
            AnswerEntry(question_id=q.id, selected_option="A"),
        ])

        assert stored == 1
        assert crud.get_submission(db, student.id, course.id)[0].selected_option == "A"

    def test_second_submission_rejected(self, db, make_course, make_student, questions_of):
        course = make_course(bank=STOCKED)
        student = make_student()
        q = questions_of(course.id)[0]
        answers = [AnswerEntry(question_id=q.id, selected_option="A")]

        exam_service.submit_exam(db, student.id, course.id, answers)
        with pytest.raises(ExamAlreadyTaken):
            exam_service.submit_exam(db, student.id, course.id, answers)

    def test_lost_race_reported_as_already_taken(self, db, make_course, make_student, questions_of, monkeypatch):
        course = make_course(bank=STOCKED)
        student = make_student()
        q = questions_of(course.id)[0]
        answers = [AnswerEntry(question_id=q.id, selected_option="A")]
        exam_service.submit_exam(db, student.id, course.id, answers)

        # the pre-check misses the earlier submission; the unique constraint catches it
        monkeypatch.setattr(exam_service.crud, "has_submitted", lambda *args: False)
        with pytest.raises(ExamAlreadyTaken):
            exam_service.submit_exam(db, student.id, course.id, answers)
        assert len(crud.get_submission(db, student.id, course.id)) == 1

    def test_question_from_another_course_rejected(self, db, make_course, make_student, questions_of):
        course = make_course(bank=STOCKED)
        other = make_course(bank={"CO1": (1, 0)})
        student = make_student()
        foreign = questions_of(other.id)[0]

        with pytest.raises(InvalidSubmissionReference) as exc:
            exam_service.submit_exam(db, student.id, course.id, [
                AnswerEntry(question_id=foreign.id, selected_option="A"),
            ])
        assert exc.value.context["question_ids"] == [foreign.id]
        assert not crud.has_submitted(db, student.id, course.id)

    def test_empty_submission_records_blank_paper(self, db, make_course, make_student):
        course = make_course(bank=STOCKED)
        student = make_student()
        attempt = exam_service.start_exam(db, student.id, course.id, rng=random.Random(9))

        stored = exam_service.submit_exam(db, student.id, course.id, [], is_malpractice=True)

        assert stored == 6
        rows = crud.get_submission(db, student.id, course.id)
        assert {r.question_id for r in rows} == set(attempt.phase1 + attempt.phase2)
        assert all(r.selected_option is None and r.malpractice_flag for r in rows)

    def test_empty_submission_without_paper(self, db, make_course, make_student):
        course = make_course(bank=STOCKED)
        with pytest.raises(EmptySubmission):
            exam_service.submit_exam(db, make_student().id, course.id, [])

    def test_empty_submission_against_empty_paper(self, db, make_course, make_student):
        course = make_course(exam_marks=0, exam_question_count=0, bank=STOCKED)
        student = make_student()
        attempt = exam_service.start_exam(db, student.id, course.id)
        assert attempt.phase1 == [] and attempt.phase2 == []

        with pytest.raises(EmptySubmission):
            exam_service.submit_exam(db, student.id, course.id, [])
        assert not crud.has_submitted(db, student.id, course.id)

    def test_answers_outside_paper_rejected(self, db, make_course, make_student, questions_of):
        course = make_course(bank=STOCKED)
        student = make_student()
        attempt = exam_service.start_exam(db, student.id, course.id, rng=random.Random(6))
        paper = set(attempt.phase1 + attempt.phase2)
        every_question = [q.id for q in questions_of(course.id)]

        with pytest.raises(QuestionNotOnPaper) as exc:
            exam_service.submit_exam(db, student.id, course.id, [
                AnswerEntry(question_id=qid, selected_option="A") for qid in every_question
            ])

        assert exc.value.context["question_ids"] == sorted(set(every_question) - paper)
        assert not crud.has_submitted(db, student.id, course.id)

    def test_score_never_exceeds_exam_marks(self, db, make_course, make_student):
        course = make_course(bank=STOCKED)
        student = make_student()
        attempt = exam_service.start_exam(db, student.id, course.id, rng=random.Random(6))

        exam_service.submit_exam(db, student.id, course.id, [
            AnswerEntry(question_id=qid, selected_option="A") for qid in attempt.phase1 + attempt.phase2
        ])

        result = exam_service.student_result(db, student.id, course.id)
        assert result.overall_marks == course.exam_marks

    def test_unknown_student_not_reported_as_already_taken(self, db, make_course, questions_of):
        course = make_course(bank=STOCKED)
        q = questions_of(course.id)[0]

        with pytest.raises(StudentNotFound):
            exam_service.submit_exam(db, 99999, course.id, [AnswerEntry(question_id=q.id, selected_option="A")])
        assert db.query(models.StudentAnswer).count() == 0

    def test_draft_course_rejected(self, db, make_course, make_student, questions_of):
        course = make_course(bank=STOCKED, is_draft=True)
        q = questions_of(course.id)[0]
        with pytest.raises(CourseNotPublished):
            exam_service.submit_exam(db, make_student().id, course.id, [
                AnswerEntry(question_id=q.id, selected_option="A"),
            ])


class TestResults:

    def _answer_all(self, db, student, course, attempt, option):
        answers = [AnswerEntry(question_id=qid, selected_option=option) for qid in attempt.phase1 + attempt.phase2]
        exam_service.submit_exam(db, student.id, course.id, answers)

    def test_full_marks(self, db, make_course, make_student):
        course = make_course(bank=STOCKED)
        student = make_student()
        attempt = exam_service.start_exam(db, student.id, course.id, rng=random.Random(3))
        self._answer_all(db, student, course, attempt, "A")

        result = exam_service.student_result(db, student.id, course.id)

        assert result.overall_marks == 10
        assert result.overall_percentage == "100.00"
        # each CO holds 5 of its 9 bank marks
        assert [s.marks for s in result.co_scores] == [5, 5]
        assert [s.percentage for s in result.co_scores] == ["55.56", "55.56"]

    def test_malpractice_submission(self, db, make_course, make_student, questions_of):
        course = make_course(bank=STOCKED)
        student = make_student()
        q = questions_of(course.id)[0]
        exam_service.submit_exam(
            db, student.id, course.id,
            [AnswerEntry(question_id=q.id, selected_option="A")], is_malpractice=True,
        )

        result = exam_service.student_result(db, student.id, course.id)
        assert result.malpractice
        assert result.overall_marks == "M"
        assert all(s.marks == "M" for s in result.co_scores)

    def test_no_submission(self, db, make_course, make_student):
        course = make_course(bank=STOCKED)
        with pytest.raises(SubmissionNotFound):
            exam_service.student_result(db, make_student().id, course.id)

    def test_course_results_lists_every_submitter(self, db, make_course, make_student, questions_of):
        course = make_course(bank=STOCKED)
        good, cheat, idle = make_student(), make_student(), make_student()
        co1_w2 = [q for q in questions_of(course.id) if q.co_number == "CO1" and q.weightage == 2]

        exam_service.submit_exam(db, good.id, course.id, [
            AnswerEntry(question_id=co1_w2[0].id, selected_option="A"),
            AnswerEntry(question_id=co1_w2[1].id, selected_option="A"),
        ])
        exam_service.submit_exam(db, cheat.id, course.id, [
            AnswerEntry(question_id=co1_w2[0].id, selected_option="A"),
        ], is_malpractice=True)

        loaded, rows = exam_service.course_results(db, course.id)

        assert loaded.id == course.id
        assert [student_id for student_id, _, _ in rows] == [good.id, cheat.id]
        _, student, result = rows[0]
        assert student.register_no == good.register_no
        assert [s.marks for s in result.co_scores] == [4, "A"]
        assert [s.percentage for s in result.co_scores] == ["44.44", "A"]
        assert result.overall_percentage == "40.00"
        assert rows[1][2].overall_marks == "M"

    def test_course_results_unknown_course(self, db):
        with pytest.raises(CourseNotFound):
            exam_service.course_results(db, 12345)

    def test_draft_course_has_no_results(self, db, make_course, make_student):
        course = make_course(bank=STOCKED, is_draft=True)
        with pytest.raises(CourseNotPublished):
            exam_service.course_results(db, course.id)
        with pytest.raises(CourseNotPublished):
            exam_service.student_result(db, make_student().id, course.id)


def test_report_malpractice(db, make_course, make_student):
    course = make_course(bank=STOCKED)
    student = make_student()

    entry = exam_service.report_malpractice(db, student.id, course.id, "tab_switch")

    assert entry.id is not None
    stored = db.query(models.MalpracticeLog).filter(models.MalpracticeLog.student_id == student.id).all()
    assert [e.event_type for e in stored] == ["tab_switch"]


def test_report_malpractice_unknown_student(db, make_course):
    course = make_course(bank=STOCKED)
    with pytest.raises(StudentNotFound):
        exam_service.report_malpractice(db, 99999, course.id, "tab_switch")
    assert db.query(models.MalpracticeLog).count() == 0
