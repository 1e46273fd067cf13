"""
Unit tests for the workflow manager.
"""

import json
from typing import Any

import pytest
import yaml

from workflow_definition.config import Settings
from workflow_definition.core.exceptions import BootstrapError, MarkupError
from workflow_definition.core.models import EventState, Extension, TriggerEvent, Workflow
from workflow_definition.expression import (
    ExpressionEvaluator,
    ExpressionEvaluatorRegistry,
    TriggerNameExpressionEvaluator,
)
from workflow_definition.manager import WorkflowManager


class AuditExtension(Extension):
    owner: str = "nobody"


class AlwaysEvaluator(ExpressionEvaluator):
    name = "always"

    def _evaluate(self, expression: str, context: Any) -> Any:
        return True


class TestBootstrap:
    """Tests for manager construction."""

    def test_default_collaborators(self, manager):
        """Test defaults are resolved from settings."""
        assert manager.expression_evaluator.name == "attribute"
        assert manager.validator is not None
        assert manager.workflow is None

    def test_validator_wired_to_manager(self, manager):
        """Test the validator reads this manager's workflow."""
        manager.set_markup("{}")

        assert not manager.validator.is_valid()

    def test_evaluator_provider_failure(self, test_settings):
        """Test a failing evaluator provider aborts construction."""
        def broken():
            raise RuntimeError("no evaluators")

        with pytest.raises(BootstrapError, match="expression evaluator registry"):
            WorkflowManager(evaluator_provider=broken, settings=test_settings)

    def test_validator_provider_returns_none(self, test_settings):
        """Test a provider returning None aborts construction."""
        with pytest.raises(BootstrapError, match="workflow validator"):
            WorkflowManager(validator_provider=lambda: None, settings=test_settings)

    def test_custom_evaluator_provider(self, test_settings):
        """Test a caller supplied registry is used."""
        registry = ExpressionEvaluatorRegistry([TriggerNameExpressionEvaluator()])

        manager = WorkflowManager(evaluator_provider=lambda: registry, settings=test_settings)

        assert manager.evaluators is registry
        assert manager.expression_evaluator.name == "trigger-name"


class TestMarkup:
    """Tests for loading and encoding workflows."""

    def test_set_markup(self, manager, sample_order_markup):
        """Test markup replaces the current workflow."""
        result = manager.set_markup(sample_order_markup)

        assert result is manager
        assert manager.workflow.name == "Order Workflow"

    def test_set_markup_yaml(self, manager, sample_order_workflow):
        """Test YAML markup is accepted."""
        manager.set_markup(yaml.safe_dump(sample_order_workflow))

        assert manager.workflow.id == "order-workflow"

    def test_invalid_markup_keeps_workflow(self, manager, sample_order_markup):
        """Test a failed decode leaves the current workflow in place."""
        manager.set_markup(sample_order_markup)
        before = manager.workflow

        with pytest.raises(MarkupError):
            manager.set_markup("{ not: [valid")

        assert manager.workflow is before

    def test_set_workflow(self, manager):
        """Test direct replacement."""
        workflow = Workflow(name="direct")

        manager.set_workflow(workflow)

        assert manager.workflow is workflow

    def test_to_workflow_does_not_replace(self, manager, sample_order_markup):
        """Test decoding without replacing the current workflow."""
        workflow = manager.to_workflow(sample_order_markup)

        assert workflow.name == "Order Workflow"
        assert manager.workflow is None

    def test_to_json_and_yaml(self, manager, sample_order_markup):
        """Test encoding the current workflow."""
        manager.set_markup(sample_order_markup)

        assert json.loads(manager.to_json())["name"] == "Order Workflow"
        assert yaml.safe_load(manager.to_yaml())["name"] == "Order Workflow"
        assert manager.to_workflow(manager.to_yaml()) == manager.workflow

    def test_encode_without_workflow(self, manager):
        """Test encoding with no workflow returns None."""
        assert manager.to_json() is None
        assert manager.to_yaml() is None

    def test_encode_failure_returns_none(self, manager, monkeypatch):
        """Test encoding failures are logged and return None."""
        def broken(workflow):
            raise RuntimeError("cannot encode")

        manager.set_workflow(Workflow(name="x"))
        monkeypatch.setattr(manager.codec, "encode", broken)
        monkeypatch.setattr(manager.codec, "encode_alternate_format", broken)

        assert manager.to_json() is None
        assert manager.to_yaml() is None

    def test_register_extension(self, manager):
        """Test extensions decode once registered."""
        markup = json.dumps({"name": "x", "extensions": [{"extensionid": "audit", "owner": "ops"}]})

        with pytest.raises(MarkupError):
            manager.set_markup(markup)

        manager.register_extension("audit", AuditExtension)
        manager.set_markup(markup)

        assert manager.workflow.extensions[0].owner == "ops"


class TestProperties:
    """Tests for property placeholders in markup."""

    def test_property_source_argument(self, test_settings):
        """Test a caller supplied property mapping."""
        manager = WorkflowManager(
            property_source={"wf.name": "Resolved"},
            settings=test_settings,
        )

        manager.set_markup('{"name": "{{ property.wf.name }}"}')

        assert manager.workflow.name == "Resolved"

    def test_property_file_setting(self, tmp_path):
        """Test properties loaded from the configured file."""
        property_file = tmp_path / "workflow.properties"
        property_file.write_text("# workflow properties\nwf.name=From File\n")
        manager = WorkflowManager(settings=Settings(property_file=property_file))

        manager.set_markup('{"name": "{{ property.wf.name }}"}')

        assert manager.workflow.name == "From File"

    def test_no_property_source(self, manager):
        """Test placeholders stay in place without a property source."""
        manager.set_markup('{"name": "{{ property.wf.name }}"}')

        assert manager.workflow.name == "{{ property.wf.name }}"

    def test_whitelisted_env_vars(self, monkeypatch):
        """Test env placeholders resolve only for whitelisted variables."""
        monkeypatch.setenv("WF_REGION", "eu-west")
        monkeypatch.setenv("WF_SECRET", "hunter2")
        manager = WorkflowManager(settings=Settings(property_env_vars=["WF_REGION", "WF_MISSING"]))

        manager.set_markup(
            '{"name": "orders-{{ env.WF_REGION }}", "version": "{{ env.WF_SECRET }}"}'
        )

        assert manager.workflow.name == "orders-eu-west"
        assert manager.workflow.version == "{{ env.WF_SECRET }}"

    def test_env_vars_with_property_source(self, monkeypatch, test_settings):
        """Test property and env placeholders resolve together."""
        monkeypatch.setenv("WF_REGION", "eu-west")
        settings = test_settings.model_copy(update={"property_env_vars": ["WF_REGION"]})
        manager = WorkflowManager(property_source={"wf.name": "Orders"}, settings=settings)

        manager.set_markup('{"name": "{{ property.wf.name }} {{ env.WF_REGION }}"}')

        assert manager.workflow.name == "Orders eu-west"


class TestEvaluators:
    """Tests for evaluator management."""

    def test_get_unknown_evaluator(self, manager):
        """Test unknown names fall back to the default evaluator."""
        assert manager.get_expression_evaluator("unknown") is manager.expression_evaluator
        assert manager.get_expression_evaluator("trigger-name").name == "trigger-name"

    def test_set_expression_evaluator(self, manager):
        """Test a new evaluator is registered and becomes the default."""
        evaluator = AlwaysEvaluator()

        manager.set_expression_evaluator(evaluator)

        assert manager.expression_evaluator is evaluator
        assert manager.get_expression_evaluator("always") is evaluator

    def test_set_default_expression_evaluator(self, manager):
        """Test switching and ignoring unknown names."""
        manager.set_default_expression_evaluator("trigger-name")
        assert manager.expression_evaluator.name == "trigger-name"

        manager.set_default_expression_evaluator("unknown")
        assert manager.expression_evaluator.name == "trigger-name"


class TestTriggerMatching:
    """Tests for trigger matching through the manager."""

    def test_event_states_for_trigger(self, manager, trigger_matching_workflow):
        """Test matching uses the current workflow and default evaluator."""
        manager.set_markup(json.dumps(trigger_matching_workflow))
        t1 = manager.workflow.get_trigger("t1")

        matched = manager.event_states_for_trigger(t1)

        assert [state.name for state in matched] == [
            "state1", "state2", "state3", "state4", "state7",
        ]

    def test_triggers_for_event_state(self, manager, trigger_matching_workflow):
        """Test triggers matching a state."""
        manager.set_markup(json.dumps(trigger_matching_workflow))
        state5 = manager.workflow.get_state("state5")

        assert [t.name for t in manager.triggers_for_event_state(state5)] == ["t3"]

    def test_all_matched_triggers(self, manager, trigger_matching_workflow):
        """Test every trigger is matched once."""
        manager.set_markup(json.dumps(trigger_matching_workflow))

        assert [t.name for t in manager.all_matched_triggers()] == ["t1", "t2", "t3"]

    def test_matching_follows_default_evaluator(self, manager, trigger_matching_workflow):
        """Test switching the default evaluator changes matching."""
        manager.set_markup(json.dumps(trigger_matching_workflow))
        manager.set_expression_evaluator(AlwaysEvaluator())

        matched = manager.event_states_for_trigger(TriggerEvent(name="anything"))

        assert len(matched) == 7

    def test_without_workflow(self, manager):
        """Test matching without a workflow returns nothing."""
        manager.set_workflow(None)

        assert manager.event_states_for_trigger(TriggerEvent(name="t1")) == []
        assert manager.triggers_for_event_state(EventState(name="x")) == []
        assert manager.all_matched_triggers() == []
