from enum import Enum
from typing import Iterable, List, NamedTuple, Sequence

from pool_deployment.commands import DeployCommand
from pool_deployment.confirm import _confirm_deployment, _confirm_resolution
from pool_deployment.constants import PROXY_CONTRACT
from pool_deployment.context import Context
from pool_deployment.exceptions import DeploymentConfigError, DeploymentError
from pool_deployment.graph import resolve
from pool_deployment.networks import NetworkProfile, get_profile, is_local_chain
from pool_deployment.params import DeploymentParameters
from pool_deployment.records import DeploymentRecord, RecordStore
from pool_deployment.transactor import Transactor
from pool_deployment.units import DeploymentUnit, UnitKind


class PlanAction(Enum):
    DEPLOY = "deploy"
    UPGRADE = "upgrade"
    RUN = "run"
    SKIP_RECORDED = "skip-recorded"
    SKIP_LOCAL_ONLY = "skip-local-only"


EXECUTING_ACTIONS = {PlanAction.DEPLOY, PlanAction.UPGRADE, PlanAction.RUN}


class PlanItem(NamedTuple):
    unit: DeploymentUnit
    action: PlanAction

    @property
    def executes(self) -> bool:
        return self.action in EXECUTING_ACTIONS


class RunReport(NamedTuple):
    deployed: List[DeploymentRecord]
    upgraded: List[DeploymentRecord]
    skipped: List[str]
    tasks: List[str]


def _action(unit: DeploymentUnit, profile: NetworkProfile, records: RecordStore) -> PlanAction:
    if unit.local_only and not profile.local:
        return PlanAction.SKIP_LOCAL_ONLY
    if unit.kind is UnitKind.TASK:
        return PlanAction.RUN
    if unit.kind is UnitKind.UPGRADE:
        target = records.find(unit.upgrades, profile.chain_id)
        if target is not None and target.contract_type == unit.name:
            return PlanAction.SKIP_RECORDED
        return PlanAction.UPGRADE
    if records.exists(unit.name, profile.chain_id):
        return PlanAction.SKIP_RECORDED
    return PlanAction.DEPLOY


def plan(
    tags: Iterable[str],
    units: Sequence[DeploymentUnit],
    profile: NetworkProfile,
    records: RecordStore,
) -> List[PlanItem]:
    """Orders the requested units and decides, from the records, what each one will do."""
    return [PlanItem(unit=u, action=_action(u, profile, records)) for u in resolve(tags, units)]


def preflight(items: Sequence[PlanItem], context: Context) -> None:
    """
    Resolves every external contract that executing units point at, so a
    missing chain configuration fails before any transaction is sent.
    """
    deploying = {item.unit.name for item in items if item.action is PlanAction.DEPLOY}
    for item in items:
        if not item.executes:
            continue
        for name in context.params.external_references(item.unit.name):
            if name in deploying:
                continue
            try:
                context.address_of(name)
            except DeploymentError as e:
                raise e.bind(item.unit.name, context.chain_id)


def print_plan(items: Sequence[PlanItem], profile: NetworkProfile) -> None:
    print(f"\nDeployment plan for {profile.name} (chain id {profile.chain_id}):")
    for index, item in enumerate(items, start=1):
        print(f"\t{index}. {item.unit.name} [{item.action.value}]")


class DeploymentEngine:
    """Runs deployment units in dependency order, one transaction at a time."""

    def __init__(
        self,
        units: Sequence[DeploymentUnit],
        context: Context,
        autosign: bool = True,
        verify: bool = False,
    ):
        self.units = list(units)
        self.context = context
        self.autosign = autosign
        self.verify = verify

    @classmethod
    def from_command(
        cls, command: DeployCommand, transactor: Transactor, units: Sequence[DeploymentUnit]
    ) -> "DeploymentEngine":
        command.validate(units)
        params = DeploymentParameters.from_yaml(command.params_filepath, units)
        records = RecordStore(command.registry_filepath or params.registry_filepath)
        context = Context(
            profile=get_profile(transactor.chain_id),
            transactor=transactor,
            records=records,
            params=params,
        )
        return cls(units, context, autosign=command.autosign, verify=command.verify)

    def _check_chain(self) -> None:
        profile, params = self.context.profile, self.context.params
        connected_chain_id = self.context.transactor.chain_id
        if profile.local:
            if not is_local_chain(params.chain_id):
                raise DeploymentConfigError(
                    f"Parameters for live chain id {params.chain_id} cannot be used on "
                    f"local network {profile.name} ({connected_chain_id})."
                )
            return
        for chain_id in (profile.chain_id, params.chain_id):
            if chain_id != connected_chain_id:
                raise DeploymentConfigError(
                    f"chain_id in params file ({chain_id}) does not match "
                    f"chain_id of current network ({connected_chain_id})."
                )

    def plan(self, tags: Iterable[str]) -> List[PlanItem]:
        return plan(tags, self.units, self.context.profile, self.context.records)

    def run(self, tags: Iterable[str]) -> RunReport:
        self._check_chain()
        items = self.plan(tags)
        print_plan(items, self.context.profile)
        preflight(items, self.context)

        report = RunReport(deployed=list(), upgraded=list(), skipped=list(), tasks=list())
        for item in items:
            try:
                self._execute(item, report)
            except DeploymentError as e:
                raise e.bind(item.unit.name, self.context.chain_id)
            except Exception as e:
                error = DeploymentError(f"{item.unit.name} failed: {type(e).__name__}: {e}")
                raise error.bind(item.unit.name, self.context.chain_id) from e
        return report

    def _confirm(self, item: PlanItem, context: Context) -> None:
        if self.autosign:
            return
        if item.action is PlanAction.DEPLOY:
            _confirm_resolution(context.initializer_parameters(), item.unit.name)
        elif item.action is PlanAction.UPGRADE:
            _confirm_deployment(item.unit.name, action=f"Upgrade {item.unit.upgrades} to")
        else:
            _confirm_deployment(item.unit.name, action="Run")

    def _execute(self, item: PlanItem, report: RunReport) -> None:
        current = item.unit
        if not item.executes:
            print(f"\n(i) Skipping {current.name} ({item.action.value}).")
            report.skipped.append(current.name)
            return

        context = self.context.bind(current)
        self._confirm(item, context)
        record = current.body(context)

        if not current.produces_record:
            report.tasks.append(current.name)
            return

        if record is None or record.name != current.record_name:
            raise DeploymentError(
                f"{current.name} did not produce a record for {current.record_name}"
            )
        record = self.context.records.put(record)
        print(f"(i) Recorded {record.name} at {record.address} in {self.context.records.filepath}")

        if item.action is PlanAction.UPGRADE:
            report.upgraded.append(record)
        else:
            report.deployed.append(record)

        if self.verify:
            self._publish(record)

    def _publish(self, record: DeploymentRecord) -> None:
        transactor = self.context.transactor
        print(f"(i) Verifying {record.contract_type}...")
        if record.is_proxy:
            transactor.publish(record.contract_type, record.implementation)
            transactor.publish(PROXY_CONTRACT, record.address)
        else:
            transactor.publish(record.contract_type, record.address)
