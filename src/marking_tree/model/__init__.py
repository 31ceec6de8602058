from .base import Base, metadata
from .auth import User
from .course import (
    CONTEXT_SYSTEM,
    CONTEXT_COURSECAT,
    CONTEXT_COURSE,
    CONTEXT_MODULE,
    NOGROUPS,
    SEPARATEGROUPS,
    VISIBLEGROUPS,
    CourseCategory,
    Course,
    Context,
    Module,
    CourseModule,
    Group,
    GroupMember,
    Enrol,
    UserEnrolment,
    Role,
    RoleCapability,
    RoleAssignment,
    Cohort,
    CohortMember,
)
from .marking import MarkingSetting, MarkingGroupSetting
from .activity import (
    Assign,
    AssignSubmission,
    AssignGrade,
    Forum,
    ForumDiscussion,
    ForumPost,
    Rating,
    Quiz,
    QuizAttempt,
    Question,
    QuestionAttempt,
    Workshop,
    WorkshopSubmission,
    WorkshopAssessment,
    Journal,
    JournalEntry,
)

__all__ = [
    'Base',
    'metadata',
    # Auth
    'User',
    # Course structure and permissions
    'CONTEXT_SYSTEM',
    'CONTEXT_COURSECAT',
    'CONTEXT_COURSE',
    'CONTEXT_MODULE',
    'NOGROUPS',
    'SEPARATEGROUPS',
    'VISIBLEGROUPS',
    'CourseCategory',
    'Course',
    'Context',
    'Module',
    'CourseModule',
    'Group',
    'GroupMember',
    'Enrol',
    'UserEnrolment',
    'Role',
    'RoleCapability',
    'RoleAssignment',
    'Cohort',
    'CohortMember',
    # Marking settings
    'MarkingSetting',
    'MarkingGroupSetting',
    # Activities
    'Assign',
    'AssignSubmission',
    'AssignGrade',
    'Forum',
    'ForumDiscussion',
    'ForumPost',
    'Rating',
    'Quiz',
    'QuizAttempt',
    'Question',
    'QuestionAttempt',
    'Workshop',
    'WorkshopSubmission',
    'WorkshopAssessment',
    'Journal',
    'JournalEntry',
]
