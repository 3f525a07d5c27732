from typing import Literal, Optional

import pydantic


class Model(pydantic.BaseModel):
    pass


class User(Model):
    id: int
    login: str


class Repository(Model):
    id: int
    name: str
    full_name: Optional[str] = None
    url: str
    html_url: Optional[str] = None


class PrConnection(Model):
    ref: str
    sha: str
    label: Optional[str] = None


class PullRequest(Model):
    url: str
    id: int
    number: int
    state: Literal["open", "closed"]
    user: User
    head: PrConnection
    base: PrConnection
    html_url: Optional[str] = None
    title: Optional[str] = None

    def __str__(self) -> str:
        return f"PR(#{self.number}, {self.head.sha[:7]})"


class IssuePullRequestLink(Model):
    url: str


class Issue(Model):
    number: int
    pull_request: Optional[IssuePullRequestLink] = None

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None


class IssueComment(Model):
    id: int
    body: str
    user: User
    html_url: Optional[str] = None
