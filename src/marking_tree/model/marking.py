from sqlalchemy import Column, ForeignKey, Index, Integer, SmallInteger, String
from sqlalchemy.orm import relationship

from .base import Base


class MarkingSetting(Base):
    """
    Per-user display setting for a course or an activity.

    ``tablename`` is 'course' or 'course_modules' and ``instanceid`` the id in
    that table. Activity rows override course rows.
    """
    __tablename__ = 'marking_settings'
    __table_args__ = (
        Index('marking_settings_scope_idx', 'userid', 'tablename', 'instanceid', unique=True),
    )

    id = Column(Integer, primary_key=True)
    userid = Column(ForeignKey('users.id'), nullable=False)
    tablename = Column(String(40), nullable=False)
    instanceid = Column(Integer, nullable=False)
    display = Column(SmallInteger, nullable=False, server_default="1")
    groupsdisplay = Column(SmallInteger, nullable=False, server_default="0")
    showorphans = Column(SmallInteger, nullable=True)

    groups = relationship(
        "MarkingGroupSetting",
        back_populates="setting",
        uselist=True,
        lazy="select",
        cascade="all, delete-orphan",
    )


class MarkingGroupSetting(Base):
    """Per-group visibility inside one MarkingSetting scope."""
    __tablename__ = 'marking_group_settings'
    __table_args__ = (
        Index('marking_group_settings_config_group_idx', 'configid', 'groupid', unique=True),
    )

    id = Column(Integer, primary_key=True)
    configid = Column(ForeignKey('marking_settings.id', ondelete='CASCADE'), nullable=False)
    groupid = Column(ForeignKey('groups.id'), nullable=False)
    display = Column(SmallInteger, nullable=False, server_default="1")

    setting = relationship("MarkingSetting", back_populates="groups")
