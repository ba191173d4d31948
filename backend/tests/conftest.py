# tests/conftest.py
import os
from datetime import date
from types import SimpleNamespace

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_ENFORCE"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fellowship.db import Base, get_db
from fellowship.main import app
from fellowship.models import (
    Branch,
    Group,
    GroupMember,
    GroupType,
    Member,
    MemberTagItem,
    Organization,
    Profile,
    TagItem,
    UserBranch,
    UserOrganization,
    UserRole,
)
from fellowship.services.context import RequestContext


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def client(db):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _user(db, org, email, role):
    user = Profile(email=email, first_name=email.split("@")[0].title())
    db.add(user)
    db.flush()
    db.add(UserOrganization(user_id=user.id, organization_id=org.id, role=role))
    return user


@pytest.fixture()
def seed(db):
    """
    One organization with two branches:
      owner    - owner, sees everything
      clerk    - write role, assigned to branch A
      viewer   - read role, assigned to branch A
      stranger - write role, no branch assignments
    """
    org = Organization(name="Grace Community Church")
    db.add(org)
    db.flush()

    north = Branch(organization_id=org.id, name="North Campus")
    south = Branch(organization_id=org.id, name="South Campus")
    db.add_all([north, south])
    db.flush()

    owner = _user(db, org, "owner@grace.test", UserRole.owner)
    clerk = _user(db, org, "clerk@grace.test", UserRole.write)
    viewer = _user(db, org, "viewer@grace.test", UserRole.read)
    stranger = _user(db, org, "stranger@grace.test", UserRole.write)
    db.flush()
    db.add_all(
        [
            UserBranch(user_id=clerk.id, branch_id=north.id, organization_id=org.id, assigned_by=owner.id),
            UserBranch(user_id=viewer.id, branch_id=north.id, organization_id=org.id, assigned_by=owner.id),
        ]
    )

    ruth = Member(
        organization_id=org.id,
        branch_id=north.id,
        first_name="Ruth",
        last_name="Moabite",
        gender="Female",
        date_of_birth=date(1990, 5, 1),
        profile_image_url="https://img.test/ruth.png",
    )
    boaz = Member(
        organization_id=org.id,
        branch_id=south.id,
        first_name="Boaz",
        middle_name="B.",
        last_name="Bethlehem",
        gender="male",
        date_of_birth=date(2015, 2, 10),
    )
    naomi = Member(organization_id=org.id, first_name="Naomi", last_name="Ephrathite")
    db.add_all([ruth, boaz, naomi])

    choir = TagItem(organization_id=org.id, name="Choir", color="#ff8800")
    db.add(choir)
    db.flush()
    db.add(MemberTagItem(member_id=naomi.id, tag_item_id=choir.id))

    youth = Group(organization_id=org.id, name="Youth Retreat", type=GroupType.temporal, created_by=owner.id)
    elders = Group(organization_id=org.id, name="Elders", type=GroupType.permanent, created_by=owner.id)
    db.add_all([youth, elders])
    db.flush()
    db.add(GroupMember(group_id=youth.id, member_id=boaz.id, assigned_by=owner.id))
    db.commit()

    return SimpleNamespace(
        org=org,
        north=north,
        south=south,
        owner=owner,
        clerk=clerk,
        viewer=viewer,
        stranger=stranger,
        ruth=ruth,
        boaz=boaz,
        naomi=naomi,
        choir=choir,
        youth=youth,
        elders=elders,
    )


@pytest.fixture()
def as_user(seed):
    """Header builder: ``as_user(seed.clerk)``."""
    def _headers(user):
        return {"X-Organization-Id": str(seed.org.id), "X-User-Id": str(user.id)}
    return _headers


@pytest.fixture()
def owner_ctx(seed):
    return RequestContext(organization_id=seed.org.id, user_id=seed.owner.id, role=UserRole.owner.value)


@pytest.fixture()
def clerk_ctx(seed):
    return RequestContext(
        organization_id=seed.org.id,
        user_id=seed.clerk.id,
        role=UserRole.write.value,
        assigned_branch_ids=(seed.north.id,),
    )
