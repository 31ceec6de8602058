"""Pytest configuration and fixtures for the marking tree tests."""

import itertools
from typing import Dict, Iterable, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from marking_tree.business_logic.context import EngineContext
from marking_tree.business_logic.nodes_factory import NodesFactory
from marking_tree.model import (
    CONTEXT_COURSE,
    CONTEXT_COURSECAT,
    CONTEXT_MODULE,
    CONTEXT_SYSTEM,
    Assign,
    AssignGrade,
    AssignSubmission,
    Base,
    Cohort,
    CohortMember,
    Context,
    Course,
    CourseCategory,
    CourseModule,
    Enrol,
    Forum,
    ForumDiscussion,
    ForumPost,
    Group,
    GroupMember,
    Journal,
    JournalEntry,
    MarkingGroupSetting,
    MarkingSetting,
    Module,
    Question,
    QuestionAttempt,
    Quiz,
    QuizAttempt,
    Rating,
    Role,
    RoleAssignment,
    RoleCapability,
    User,
    UserEnrolment,
    Workshop,
    WorkshopAssessment,
    WorkshopSubmission,
)
from marking_tree.sources import default_source_registry
from marking_types.navigation import Dimension, NavigationPath, TreeKind
from marking_types.settings import ScopeType


# Fixed "now" for every engine context built by the tests
NOW = 1000

GRADING_CAPABILITIES = (
    "mod/assign:grade",
    "mod/forum:rate",
    "mod/quiz:grade",
    "mod/workshop:editdimensions",
    "mod/journal:manageentries",
)

ACTIVITY_TABLES = {
    "assign": Assign,
    "forum": Forum,
    "quiz": Quiz,
    "workshop": Workshop,
    "journal": Journal,
}


# ============================================================================
# Store
# ============================================================================


@pytest.fixture
def engine():
    """In-memory SQLite store shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    session = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)()
    yield session
    session.close()


# ============================================================================
# Seeding
# ============================================================================


class Seeder:
    """
    Builds the course/context/role/enrolment data the engine reads.

    Every method flushes, so rows are visible to the engine's queries without
    committing.
    """

    def __init__(self, db: Session):
        self.db = db
        self._context_ids = itertools.count(2)
        self._contexts: Dict[tuple, Context] = {}
        self.instances: Dict[int, object] = {}

        self.system = Context(id=1, contextlevel=CONTEXT_SYSTEM, instanceid=0, path="/1", depth=1)
        db.add(self.system)
        self.modules = {}
        for module_id, name in enumerate(ACTIVITY_TABLES, start=1):
            module = Module(id=module_id, name=name, visible=1)
            db.add(module)
            self.modules[name] = module
        db.flush()

    def _add(self, row):
        self.db.add(row)
        self.db.flush()
        return row

    def _context(self, level: int, instance_id: int, parent: Context) -> Context:
        context_id = next(self._context_ids)
        context = self._add(Context(
            id=context_id,
            contextlevel=level,
            instanceid=instance_id,
            path=f"{parent.path}/{context_id}",
            depth=parent.depth + 1,
        ))
        self._contexts[(level, instance_id)] = context
        return context

    def context_of(self, level: int, instance_id: int) -> Context:
        return self._contexts[(level, instance_id)]

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def user(self, username: str, firstname: str = "", lastname: str = "") -> User:
        return self._add(User(username=username, firstname=firstname or username.title(), lastname=lastname))

    def category(self, name: str, parent: Optional[CourseCategory] = None) -> CourseCategory:
        category = self._add(CourseCategory(
            name=name,
            parent=parent.id if parent else None,
            depth=parent.depth + 1 if parent else 1,
        ))
        parent_context = self.context_of(CONTEXT_COURSECAT, parent.id) if parent else self.system
        self._context(CONTEXT_COURSECAT, category.id, parent_context)
        return category

    def course(self, shortname: str, category: Optional[CourseCategory] = None, visible: int = 1,
               groupmode: int = 0, groupmodeforce: int = 0) -> Course:
        course = self._add(Course(
            shortname=shortname,
            fullname=f"{shortname} full name",
            category=category.id if category else None,
            visible=visible,
            groupmode=groupmode,
            groupmodeforce=groupmodeforce,
        ))
        parent_context = self.context_of(CONTEXT_COURSECAT, category.id) if category else self.system
        self._context(CONTEXT_COURSE, course.id, parent_context)
        return course

    def teacher_role(self, shortname: str = "editingteacher",
                     capabilities: Iterable[str] = GRADING_CAPABILITIES) -> Role:
        role = self._add(Role(shortname=shortname))
        for capability in capabilities:
            self._add(RoleCapability(roleid=role.id, capability=capability, permission=1))
        return role

    def assign_role(self, user: User, role: Role, context: Context) -> RoleAssignment:
        return self._add(RoleAssignment(roleid=role.id, contextid=context.id, userid=user.id))

    def teach(self, user: User, role: Role, course: Course) -> RoleAssignment:
        return self.assign_role(user, role, self.context_of(CONTEXT_COURSE, course.id))

    def enrol(self, user: User, course: Course, plugin: str = "manual", status: int = 0,
              timestart: int = 0, timeend: int = 0, instance_status: int = 0) -> UserEnrolment:
        instance = self.db.query(Enrol).filter_by(
            courseid=course.id, enrol=plugin, status=instance_status
        ).one_or_none()
        if instance is None:
            instance = self._add(Enrol(courseid=course.id, enrol=plugin, status=instance_status))
        return self._add(UserEnrolment(
            enrolid=instance.id,
            userid=user.id,
            status=status,
            timestart=timestart,
            timeend=timeend,
        ))

    def activity(self, module_name: str, course: Course, name: str, visible: int = 1,
                 groupmode: int = 0, **fields) -> CourseModule:
        if module_name == "forum":
            fields.setdefault("assessed", 1)
        instance = self._add(ACTIVITY_TABLES[module_name](course=course.id, name=name, **fields))
        cm = self._add(CourseModule(
            course=course.id,
            module=self.modules[module_name].id,
            instance=instance.id,
            visible=visible,
            groupmode=groupmode,
        ))
        self._context(CONTEXT_MODULE, cm.id, self.context_of(CONTEXT_COURSE, course.id))
        self.instances[cm.id] = instance
        return cm

    def group(self, course: Course, name: str, description: Optional[str] = None) -> Group:
        return self._add(Group(courseid=course.id, name=name, description=description))

    def member(self, group: Group, user: User) -> GroupMember:
        return self._add(GroupMember(groupid=group.id, userid=user.id))

    def cohort(self, name: str, description: Optional[str] = None) -> Cohort:
        return self._add(Cohort(contextid=self.system.id, name=name, description=description))

    def cohort_member(self, cohort: Cohort, user: User) -> CohortMember:
        return self._add(CohortMember(cohortid=cohort.id, userid=user.id))

    # ------------------------------------------------------------------
    # Work to mark
    # ------------------------------------------------------------------

    def submit(self, cm: CourseModule, student: User, timemodified: int = 100,
               status: str = "submitted") -> AssignSubmission:
        return self._add(AssignSubmission(
            assignment=self.instances[cm.id].id,
            userid=student.id,
            status=status,
            timemodified=timemodified,
        ))

    def grade(self, cm: CourseModule, student: User, grade: Optional[float] = 50,
              timemodified: int = 200) -> AssignGrade:
        return self._add(AssignGrade(
            assignment=self.instances[cm.id].id,
            userid=student.id,
            grade=grade,
            timemodified=timemodified,
        ))

    def discussion(self, cm: CourseModule, author: User, subject: str,
                   message: str = "", created: int = 100) -> ForumDiscussion:
        discussion = self._add(ForumDiscussion(forum=self.instances[cm.id].id, name=subject, userid=author.id))
        first = self._add(ForumPost(
            discussion=discussion.id,
            userid=author.id,
            subject=subject,
            message=message,
            created=created,
        ))
        discussion.firstpost = first.id
        self.db.flush()
        return discussion

    def reply(self, discussion: ForumDiscussion, author: User, subject: str = "Re",
              created: int = 200) -> ForumPost:
        return self._add(ForumPost(
            discussion=discussion.id,
            parent=discussion.firstpost,
            userid=author.id,
            subject=subject,
            message="",
            created=created,
        ))

    def rate(self, post_id: int, rater: User, rating: int = 3) -> Rating:
        return self._add(Rating(component="mod_forum", itemid=post_id, userid=rater.id, rating=rating))

    def question(self, name: str, text: Optional[str] = None) -> Question:
        return self._add(Question(name=name, questiontext=text))

    def quiz_attempt(self, cm: CourseModule, student: User, questions: Dict[Question, str],
                     state: str = "finished") -> QuizAttempt:
        """``questions`` maps each question to its attempt state, e.g. 'needsgrading'."""
        attempt = self._add(QuizAttempt(quiz=self.instances[cm.id].id, userid=student.id, state=state))
        for question, question_state in questions.items():
            self._add(QuestionAttempt(quizattemptid=attempt.id, questionid=question.id, state=question_state))
        return attempt

    def workshop_submission(self, cm: CourseModule, author: User, example: int = 0) -> WorkshopSubmission:
        return self._add(WorkshopSubmission(workshopid=self.instances[cm.id].id, authorid=author.id, example=example))

    def assess(self, submission: WorkshopSubmission, reviewer: User, grade: Optional[float] = 80) -> WorkshopAssessment:
        return self._add(WorkshopAssessment(submissionid=submission.id, reviewerid=reviewer.id, grade=grade))

    def journal_entry(self, cm: CourseModule, student: User, modified: int = 100,
                      timemarked: Optional[int] = None) -> JournalEntry:
        return self._add(JournalEntry(
            journal=self.instances[cm.id].id,
            userid=student.id,
            modified=modified,
            timemarked=timemarked,
        ))

    # ------------------------------------------------------------------
    # Display settings
    # ------------------------------------------------------------------

    def setting(self, user: User, scope_type: ScopeType, scope_id: int, display: int = 1,
                groupsdisplay: int = 0, showorphans: Optional[int] = None) -> MarkingSetting:
        return self._add(MarkingSetting(
            userid=user.id,
            tablename=ScopeType(scope_type).value,
            instanceid=scope_id,
            display=display,
            groupsdisplay=groupsdisplay,
            showorphans=showorphans,
        ))

    def group_setting(self, setting: MarkingSetting, group: Group, display: int) -> MarkingGroupSetting:
        return self._add(MarkingGroupSetting(configid=setting.id, groupid=group.id, display=display))


@pytest.fixture
def seed(db) -> Seeder:
    return Seeder(db)


class Classroom:
    """One visible course with a teacher and three enrolled students."""

    def __init__(self, seed: Seeder):
        self.seed = seed
        self.role = seed.teacher_role()
        self.teacher = seed.user("teacher", "Tess", "Teacher")
        self.category = seed.category("Faculty")
        self.course = seed.course("C1", category=self.category)
        seed.teach(self.teacher, self.role, self.course)
        self.students = [
            seed.user("anna", "Anna", "Adams"),
            seed.user("bert", "Bert", "Brown"),
            seed.user("cleo", "Cleo", "Clark"),
        ]
        for student in self.students:
            seed.enrol(student, self.course)


@pytest.fixture
def classroom(seed) -> Classroom:
    return Classroom(seed)


# ============================================================================
# Engine
# ============================================================================


@pytest.fixture
def sources():
    return default_source_registry()


@pytest.fixture
def factory_for(db, sources):
    """Builds a NodesFactory with a fresh request context for a user."""
    def build(user: User) -> NodesFactory:
        return NodesFactory(EngineContext(db, user.id, now=NOW), sources)
    return build


@pytest.fixture
def nodes_for(factory_for):
    """
    Shortcut for one get_nodes() call, with the path given as keyword
    arguments named after the dimensions' wire names.
    """
    def get(user: User, next_dimension: Dimension, tree_kind: TreeKind = TreeKind.MARKING,
            include_config: bool = False, **values):
        path = NavigationPath(
            values={Dimension(name): value for name, value in values.items()},
            next_dimension=next_dimension,
        )
        return factory_for(user).get_nodes(path, tree_kind, include_config)
    return get
