"""Tables read by the bundled content sources."""

from sqlalchemy import Column, ForeignKey, Index, Integer, Numeric, SmallInteger, String, Text

from .base import Base


# assign

class Assign(Base):
    __tablename__ = 'assign'

    id = Column(Integer, primary_key=True)
    course = Column(ForeignKey('course.id'), nullable=False)
    name = Column(String(255), nullable=False)
    intro = Column(Text)
    grade = Column(Integer, nullable=False, server_default="100")


class AssignSubmission(Base):
    __tablename__ = 'assign_submission'
    __table_args__ = (
        Index('assign_submission_assignment_user_idx', 'assignment', 'userid'),
    )

    id = Column(Integer, primary_key=True)
    assignment = Column(ForeignKey('assign.id'), nullable=False)
    userid = Column(ForeignKey('users.id'), nullable=False)
    status = Column(String(20), nullable=False, server_default="new")
    timemodified = Column(Integer, nullable=False, server_default="0")


class AssignGrade(Base):
    __tablename__ = 'assign_grades'
    __table_args__ = (
        Index('assign_grades_assignment_user_idx', 'assignment', 'userid'),
    )

    id = Column(Integer, primary_key=True)
    assignment = Column(ForeignKey('assign.id'), nullable=False)
    userid = Column(ForeignKey('users.id'), nullable=False)
    grade = Column(Numeric(10, 5))
    timemodified = Column(Integer, nullable=False, server_default="0")


# forum

class Forum(Base):
    __tablename__ = 'forum'

    id = Column(Integer, primary_key=True)
    course = Column(ForeignKey('course.id'), nullable=False)
    type = Column(String(20), nullable=False, server_default="general")
    name = Column(String(255), nullable=False)
    intro = Column(Text)
    assessed = Column(SmallInteger, nullable=False, server_default="0")


class ForumDiscussion(Base):
    __tablename__ = 'forum_discussions'

    id = Column(Integer, primary_key=True)
    forum = Column(ForeignKey('forum.id'), nullable=False)
    name = Column(String(255), nullable=False)
    firstpost = Column(Integer, nullable=False, server_default="0")
    userid = Column(ForeignKey('users.id'), nullable=False)


class ForumPost(Base):
    __tablename__ = 'forum_posts'

    id = Column(Integer, primary_key=True)
    discussion = Column(ForeignKey('forum_discussions.id'), nullable=False)
    parent = Column(Integer, nullable=False, server_default="0")
    userid = Column(ForeignKey('users.id'), nullable=False)
    created = Column(Integer, nullable=False, server_default="0")
    subject = Column(String(255), nullable=False)
    message = Column(Text)


class Rating(Base):
    __tablename__ = 'rating'
    __table_args__ = (
        Index('rating_component_item_user_idx', 'component', 'itemid', 'userid'),
    )

    id = Column(Integer, primary_key=True)
    component = Column(String(100), nullable=False)
    itemid = Column(Integer, nullable=False)
    userid = Column(ForeignKey('users.id'), nullable=False)
    rating = Column(Integer, nullable=False)


# quiz

class Quiz(Base):
    __tablename__ = 'quiz'

    id = Column(Integer, primary_key=True)
    course = Column(ForeignKey('course.id'), nullable=False)
    name = Column(String(255), nullable=False)
    intro = Column(Text)


class QuizAttempt(Base):
    __tablename__ = 'quiz_attempts'

    id = Column(Integer, primary_key=True)
    quiz = Column(ForeignKey('quiz.id'), nullable=False)
    userid = Column(ForeignKey('users.id'), nullable=False)
    state = Column(String(16), nullable=False, server_default="inprogress")
    timefinish = Column(Integer, nullable=False, server_default="0")


class Question(Base):
    __tablename__ = 'question'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    questiontext = Column(Text)


class QuestionAttempt(Base):
    __tablename__ = 'question_attempts'

    id = Column(Integer, primary_key=True)
    quizattemptid = Column(ForeignKey('quiz_attempts.id'), nullable=False)
    questionid = Column(ForeignKey('question.id'), nullable=False)
    state = Column(String(20), nullable=False, server_default="todo")


# workshop

class Workshop(Base):
    __tablename__ = 'workshop'

    id = Column(Integer, primary_key=True)
    course = Column(ForeignKey('course.id'), nullable=False)
    name = Column(String(255), nullable=False)
    intro = Column(Text)
    phase = Column(SmallInteger, nullable=False, server_default="0")


class WorkshopSubmission(Base):
    __tablename__ = 'workshop_submissions'

    id = Column(Integer, primary_key=True)
    workshopid = Column(ForeignKey('workshop.id'), nullable=False)
    authorid = Column(ForeignKey('users.id'), nullable=False)
    example = Column(SmallInteger, nullable=False, server_default="0")
    timemodified = Column(Integer, nullable=False, server_default="0")


class WorkshopAssessment(Base):
    __tablename__ = 'workshop_assessments'

    id = Column(Integer, primary_key=True)
    submissionid = Column(ForeignKey('workshop_submissions.id'), nullable=False)
    reviewerid = Column(ForeignKey('users.id'), nullable=False)
    grade = Column(Numeric(10, 5))


# journal

class Journal(Base):
    __tablename__ = 'journal'

    id = Column(Integer, primary_key=True)
    course = Column(ForeignKey('course.id'), nullable=False)
    name = Column(String(255), nullable=False)
    intro = Column(Text)
    assessed = Column(SmallInteger, nullable=False, server_default="1")


class JournalEntry(Base):
    __tablename__ = 'journal_entries'

    id = Column(Integer, primary_key=True)
    journal = Column(ForeignKey('journal.id'), nullable=False)
    userid = Column(ForeignKey('users.id'), nullable=False)
    modified = Column(Integer, nullable=False, server_default="0")
    timemarked = Column(Integer, nullable=True)
