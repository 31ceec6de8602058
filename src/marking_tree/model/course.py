from sqlalchemy import Column, ForeignKey, Index, Integer, SmallInteger, String, Text
from sqlalchemy.orm import relationship

from .base import Base


# Context levels, ordered from the site root down to a single activity
CONTEXT_SYSTEM = 10
CONTEXT_COURSECAT = 40
CONTEXT_COURSE = 50
CONTEXT_MODULE = 70

# Group modes of courses and activities
NOGROUPS = 0
SEPARATEGROUPS = 1
VISIBLEGROUPS = 2


class CourseCategory(Base):
    """Category tree node. ``depth`` is 1 for top-level categories."""
    __tablename__ = 'course_categories'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    parent = Column(ForeignKey('course_categories.id'), nullable=True)
    depth = Column(Integer, nullable=False, server_default="1")

    parent_category = relationship("CourseCategory", remote_side=[id], lazy="select")


class Course(Base):
    __tablename__ = 'course'

    id = Column(Integer, primary_key=True)
    category = Column(ForeignKey('course_categories.id'), nullable=True)
    shortname = Column(String(255), nullable=False)
    fullname = Column(String(255), nullable=False)
    summary = Column(Text)
    visible = Column(SmallInteger, nullable=False, server_default="1")
    groupmode = Column(SmallInteger, nullable=False, server_default="0")
    # 1 = every activity uses the course group mode
    groupmodeforce = Column(SmallInteger, nullable=False, server_default="0")


class Context(Base):
    """
    Permission context. ``path`` lists ancestor context ids from the site
    root down to this context, e.g. ``/1/3/9/40``.
    """
    __tablename__ = 'context'
    __table_args__ = (
        Index('context_level_instance_idx', 'contextlevel', 'instanceid', unique=True),
    )

    id = Column(Integer, primary_key=True)
    contextlevel = Column(Integer, nullable=False)
    instanceid = Column(Integer, nullable=False)
    path = Column(String(255), nullable=False)
    depth = Column(Integer, nullable=False)

    @property
    def ancestor_ids(self) -> list[int]:
        return [int(part) for part in self.path.split('/') if part]


class Module(Base):
    """Installed activity module (content type). ``visible`` = enabled site-wide."""
    __tablename__ = 'modules'

    id = Column(Integer, primary_key=True)
    name = Column(String(20), unique=True, nullable=False)
    visible = Column(SmallInteger, nullable=False, server_default="1")


class CourseModule(Base):
    """An activity placed in a course; ``instance`` points into the module's own table."""
    __tablename__ = 'course_modules'
    __table_args__ = (
        Index('course_modules_course_idx', 'course'),
        Index('course_modules_module_instance_idx', 'module', 'instance'),
    )

    id = Column(Integer, primary_key=True)
    course = Column(ForeignKey('course.id'), nullable=False)
    module = Column(ForeignKey('modules.id'), nullable=False)
    instance = Column(Integer, nullable=False)
    visible = Column(SmallInteger, nullable=False, server_default="1")
    groupmode = Column(SmallInteger, nullable=False, server_default="0")


class Group(Base):
    __tablename__ = 'groups'

    id = Column(Integer, primary_key=True)
    courseid = Column(ForeignKey('course.id'), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)


class GroupMember(Base):
    __tablename__ = 'groups_members'
    __table_args__ = (
        Index('groups_members_group_user_idx', 'groupid', 'userid', unique=True),
    )

    id = Column(Integer, primary_key=True)
    groupid = Column(ForeignKey('groups.id'), nullable=False)
    userid = Column(ForeignKey('users.id'), nullable=False)


class Enrol(Base):
    """Enrolment instance of a plugin in a course. ``status`` 0 = enabled."""
    __tablename__ = 'enrol'

    id = Column(Integer, primary_key=True)
    courseid = Column(ForeignKey('course.id'), nullable=False)
    enrol = Column(String(20), nullable=False)
    status = Column(SmallInteger, nullable=False, server_default="0")


class UserEnrolment(Base):
    """``status`` 0 = active; ``timeend`` 0 = open ended."""
    __tablename__ = 'user_enrolments'
    __table_args__ = (
        Index('user_enrolments_enrol_user_idx', 'enrolid', 'userid', unique=True),
    )

    id = Column(Integer, primary_key=True)
    enrolid = Column(ForeignKey('enrol.id'), nullable=False)
    userid = Column(ForeignKey('users.id'), nullable=False)
    status = Column(SmallInteger, nullable=False, server_default="0")
    timestart = Column(Integer, nullable=False, server_default="0")
    timeend = Column(Integer, nullable=False, server_default="0")


class Role(Base):
    __tablename__ = 'role'

    id = Column(Integer, primary_key=True)
    shortname = Column(String(100), unique=True, nullable=False)


class RoleCapability(Base):
    """Site-wide capability definition of a role. ``permission`` 1 = allow."""
    __tablename__ = 'role_capabilities'
    __table_args__ = (
        Index('role_capabilities_role_cap_idx', 'roleid', 'capability', unique=True),
    )

    id = Column(Integer, primary_key=True)
    roleid = Column(ForeignKey('role.id'), nullable=False)
    capability = Column(String(255), nullable=False)
    permission = Column(SmallInteger, nullable=False, server_default="1")


class RoleAssignment(Base):
    __tablename__ = 'role_assignments'
    __table_args__ = (
        Index('role_assignments_user_ctx_idx', 'userid', 'contextid'),
    )

    id = Column(Integer, primary_key=True)
    roleid = Column(ForeignKey('role.id'), nullable=False)
    contextid = Column(ForeignKey('context.id'), nullable=False)
    userid = Column(ForeignKey('users.id'), nullable=False)


class Cohort(Base):
    """Site or category wide set of users, independent of courses."""
    __tablename__ = 'cohort'

    id = Column(Integer, primary_key=True)
    contextid = Column(ForeignKey('context.id'), nullable=False)
    name = Column(String(254), nullable=False)
    description = Column(Text)


class CohortMember(Base):
    __tablename__ = 'cohort_members'
    __table_args__ = (
        Index('cohort_members_cohort_user_idx', 'cohortid', 'userid', unique=True),
    )

    id = Column(Integer, primary_key=True)
    cohortid = Column(ForeignKey('cohort.id'), nullable=False)
    userid = Column(ForeignKey('users.id'), nullable=False)
