"""Request bodies accepted by the relay endpoints.

Field names follow what the dashboard already sends: ``tech`` names the
backend, ``endpoint`` is its base URL and ``target`` is the recipient user id.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from loadcompare.engine.models import Scenario, TargetSpec


class _RelayModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoadTestRequest(_RelayModel):
    tech: str = "default"
    scenario: Scenario = Scenario.POST
    count: int = 100
    target: str = ""
    concurrency: int = 10
    endpoint: str = ""
    token: str = ""
    include_outcomes: bool = False

    def to_target(self) -> TargetSpec:
        return TargetSpec(
            target_id=self.tech,
            base_url=self.endpoint,
            token=self.token,
            count=self.count,
            concurrency=self.concurrency,
            scenario=self.scenario,
            recipient=self.target,
        )


class BackendTarget(_RelayModel):
    tech: str
    endpoint: str = ""
    token: str = ""
    connected: bool = True


class CompareRequest(_RelayModel):
    scenario: Scenario = Scenario.POST
    count: int = 100
    target: str = ""
    concurrency: int = 10
    targets: list[BackendTarget] = Field(default_factory=list)
    probe_health: bool = False
    include_outcomes: bool = False

    def to_targets(self) -> list[TargetSpec]:
        return [
            TargetSpec(
                target_id=backend.tech,
                base_url=backend.endpoint,
                token=backend.token,
                count=self.count,
                concurrency=self.concurrency,
                scenario=self.scenario,
                recipient=self.target,
                connected=backend.connected,
            )
            for backend in self.targets
        ]
