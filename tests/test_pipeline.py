import pytest

from symforge.config import ForgeSettings, LineageSettings
from conftest import make_capsule
from symforge.errors import DimensionMismatchError, UnknownCapsuleError
from symforge.governance import GovernancePolicy
from symforge.models import PreprocessingMethod, SymbolType
from symforge.pipeline import MORPH_TRANSITION, ForgePipeline


def test_generate_records_a_node() -> None:
    pipeline = ForgePipeline()
    capsule = pipeline.generate("natural", 64, 64, seed=4)

    assert capsule.symbol_type is SymbolType.NATURAL
    assert capsule.template_name == "natural"
    assert capsule.generation_seed == 4
    assert capsule.contributor == "symforge"
    assert capsule.audit_tag == "symforge"
    assert capsule.provenance.method is PreprocessingMethod.BINARIZED
    assert [n.identity for n in pipeline.lineage.nodes] == [capsule.identity]


@pytest.mark.parametrize("symbol_type", list(SymbolType), ids=lambda t: t.value)
def test_generated_symbols_pass_the_default_chain(symbol_type: SymbolType) -> None:
    pipeline = ForgePipeline()
    report = pipeline.validate(pipeline.generate(symbol_type, 64, 64))
    assert report.passed, [(r.validator, r.message) for r in report.failures]


def test_morph_links_both_parents() -> None:
    pipeline = ForgePipeline()
    a = pipeline.generate("flat", 48, 48)
    b = pipeline.generate("sharp", 48, 48)
    child = pipeline.morph(a, b, 0.3)

    assert child.interpolation_factor == 0.3
    assert len(pipeline.lineage.nodes) == 3
    edges = pipeline.lineage.edges
    assert [(e.from_id, e.to_id) for e in edges] == [(a.identity, child.identity), (b.identity, child.identity)]
    assert {e.transition_type for e in edges} == {MORPH_TRANSITION}
    assert pipeline.lineage.ancestors(child.identity) == {a.identity, b.identity}


def test_morph_of_mismatched_sizes_fails_before_recording() -> None:
    pipeline = ForgePipeline()
    a = pipeline.generate("flat", 32, 32)
    b = pipeline.generate("sharp", 48, 48)
    with pytest.raises(DimensionMismatchError):
        pipeline.morph(a, b, 0.5)
    assert len(pipeline.lineage.nodes) == 2
    assert pipeline.lineage.edges == ()


def test_morph_with_unrecorded_parent_records_nothing(striped) -> None:
    pipeline = ForgePipeline()
    a = pipeline.generate("flat", 32, 32)
    outsider = make_capsule(striped)

    with pytest.raises(UnknownCapsuleError):
        pipeline.morph(a, outsider, 0.5)
    assert pipeline.capsules == [a]
    assert len(pipeline.lineage.nodes) == 1
    assert pipeline.lineage.edges == ()


def test_permissive_lineage_morphs_unrecorded_parents(striped) -> None:
    pipeline = ForgePipeline(ForgeSettings(lineage=LineageSettings(strict_links=False)))
    a = pipeline.generate("flat", 32, 32)
    child = pipeline.morph(a, make_capsule(striped), 0.5)

    assert pipeline.capsules == [a, child]
    assert len(pipeline.lineage.edges) == 2


def test_propose_over_validated_batch() -> None:
    pipeline = ForgePipeline()
    a = pipeline.generate("flat", 64, 64)
    b = pipeline.generate("natural", 64, 64)
    pipeline.validate_all()

    proposal = pipeline.propose()
    assert proposal.confidence_score == 1.0
    assert not proposal.requires_contributor_approval
    assert [r.capsule_id for r in pipeline.reports] == [a.identity, b.identity]


def test_unvalidated_capsule_holds_the_batch() -> None:
    pipeline = ForgePipeline()
    a = pipeline.generate("flat", 64, 64)
    pipeline.generate("sharp", 64, 64)
    pipeline.validate(a)

    assert pipeline.propose().requires_contributor_approval


def test_settings_flow_into_components() -> None:
    settings = ForgeSettings(
        lineage=LineageSettings(strict_links=False),
        governance=GovernancePolicy(audit_tag="phase-10"),
        contributor="lab-7",
    )
    pipeline = ForgePipeline(settings)
    capsule = pipeline.generate("flat", 32, 32)

    assert pipeline.lineage.strict is False
    assert capsule.contributor == "lab-7"
    assert capsule.audit_tag == "phase-10"
    assert pipeline.propose().audit_tag == "phase-10"


def test_capsules_sharing_an_identity_keep_their_own_reports() -> None:
    pipeline = ForgePipeline()
    a = pipeline.generate("flat", 64, 64, seed=1)
    b = pipeline.generate("sharp", 64, 64, seed=1)
    same = pipeline.morph(a, b, 0.0)
    assert same.identity == a.identity

    reports = pipeline.validate_all()
    assert len(reports) == 3
    assert [capsule for capsule, _ in pipeline.validated] == [a, b, same]
    assert pipeline.report_for(same) is reports[2]
    assert len(pipeline.results) == sum(len(r.results) for r in reports)

    proposal = pipeline.propose()
    assert proposal.proposed_change.startswith("Promote 3 capsule(s)")


def test_twin_generations_are_both_scored() -> None:
    pipeline = ForgePipeline()
    a = pipeline.generate("flat", 64, 64, seed=1)
    b = pipeline.generate("flat", 64, 64, seed=1)
    pipeline.morph(a, b, 0.5)
    pipeline.validate_all()

    per_capsule = len(pipeline.chain.names)
    assert len(pipeline.results) == 3 * per_capsule
    assert "3 capsule(s)" in pipeline.propose().proposed_change


def test_revalidating_a_capsule_replaces_its_report() -> None:
    pipeline = ForgePipeline()
    a = pipeline.generate("flat", 64, 64)
    first = pipeline.validate(a)
    second = pipeline.validate(a)

    assert first is not second
    assert pipeline.reports == [second]
