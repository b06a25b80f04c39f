from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator

from devops_ai.core.errors import InvalidTopic
from devops_ai.core.types import Step, Topic
from devops_ai.prompts import get_initial_message


class TopicCatalog:
    """Read-only table of topics, built once and looked up by id."""

    def __init__(self, topics: Iterable[Topic]) -> None:
        ordered = tuple(topics)
        by_id: dict[str, Topic] = {}
        for topic in ordered:
            if topic.id in by_id:
                raise ValueError(f"Topic '{topic.id}' is defined twice")
            by_id[topic.id] = topic
        self._topics = ordered
        self._by_id = MappingProxyType(by_id)

    def list_topics(self) -> tuple[Topic, ...]:
        return self._topics

    def get_topic(self, topic_id: str) -> Topic:
        topic = self._by_id.get(topic_id)
        if topic is None:
            raise InvalidTopic(topic_id)
        return topic

    def has_topic(self, topic_id: str) -> bool:
        return topic_id in self._by_id

    def __contains__(self, topic_id: object) -> bool:
        return topic_id in self._by_id

    def __iter__(self) -> Iterator[Topic]:
        return iter(self._topics)

    def __len__(self) -> int:
        return len(self._topics)


GITHUB_SETUP = Topic(
    id="github-setup",
    title="GitHub Setup",
    description="Learn how to set up your GitHub account and start using Git",
    initial_message=get_initial_message("github-setup"),
    steps=(
        Step(
            title="Create a GitHub account",
            prompt=(
                "Provide a concise, step-by-step guide on how to create a GitHub account, "
                "focusing only on the essential steps."
            ),
        ),
        Step(
            title="Install Git on your local machine",
            prompt=(
                "Provide a short, clear explanation on how to install Git on a local machine, "
                "mentioning steps for common operating systems."
            ),
        ),
        Step(
            title="Set up SSH keys for secure authentication",
            prompt="Provide a brief, step-by-step guide on how to set up SSH keys for GitHub authentication.",
        ),
        Step(
            title="Configure Git with your GitHub credentials",
            prompt=(
                "Explain concisely how to configure Git with GitHub credentials, "
                "focusing only on the essential commands."
            ),
        ),
        Step(
            title="Create your first repository",
            prompt="Explain succinctly how to create a new repository on GitHub, covering only the basic steps.",
        ),
        Step(
            title="Clone the repository to your local machine",
            prompt=(
                "Provide a concise explanation of how to clone a GitHub repository to a local machine, "
                "including the basic command."
            ),
        ),
        Step(
            title="Make changes and commit them",
            prompt=(
                "Explain briefly how to make changes to files and commit them using Git, "
                "focusing on the essential commands."
            ),
        ),
        Step(
            title="Push changes to GitHub",
            prompt=(
                "Provide a short, clear explanation of how to push local commits to GitHub, "
                "including the basic command."
            ),
        ),
        Step(
            title="Create a branch and make a pull request",
            prompt=(
                "Explain concisely how to create a branch and make a pull request on GitHub, "
                "covering only the essential steps."
            ),
        ),
        Step(
            title="Collaborate on a project",
            prompt=(
                "Provide a brief overview of how to start collaborating on a GitHub project, "
                "mentioning key concepts like forking and contributing."
            ),
        ),
    ),
)

DEFAULT_CATALOG = TopicCatalog([GITHUB_SETUP])
