"""
AI drafting behind a narrow generation-service interface.

The deterministic core never talks to a model. Everything model-backed goes
through `GenerationService.generate(schema, prompt)`, which takes a JSON
Schema and prompt text and returns a dict (or None). Tests substitute a
fake service; production uses `OpenAIGenerationService`.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol

from openai import (
    APIConnectionError,
    APITimeoutError,
    OpenAI,
    OpenAIError,
    RateLimitError,
)
from pydantic import BaseModel, Field, ValidationError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src import config
from src.exceptions import ConfigurationError, GenerationError
from src.rig_lib import MiscHardware, PickList, RiggingComponent, RigProject

logger = logging.getLogger(__name__)


# --- Output schemas ---


class HardwareItem(BaseModel):
    item_name: str = Field(description="Name of the hardware item")
    quantity: int = Field(ge=1, description="Required quantity")
    specifications: str = Field(description="Detailed specifications of the item")
    suggested_replacement_part: str | None = Field(
        default=None, description="Suggested replacement part name or type"
    )
    notes: str | None = Field(default=None, description="Any additional notes")


class HardwareListResult(BaseModel):
    hardware_list: list[HardwareItem] = Field(
        description="A comprehensive list of all required hardware."
    )
    summary: str | None = Field(
        default=None, description="A brief summary and recommendations."
    )


class EmailDraft(BaseModel):
    """Plain-text email as drafted by the model."""

    subject: str
    body: str


# --- Service ---


class GenerationService(Protocol):
    def generate(self, schema: dict[str, Any], prompt: str) -> dict[str, Any] | None:
        """Fill in `schema` from `prompt`; None if nothing usable came back."""
        ...


def _strip_json_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


class OpenAIGenerationService:
    """
    Generation service backed by the OpenAI Chat Completions API in JSON mode.

    Transient API failures are retried with exponential backoff. Any API
    error still standing after that surfaces as a GenerationError.
    """

    def __init__(self, client: OpenAI | None = None, model: str | None = None):
        if client is None:
            api_key = config.get_openai_api_key()
            if not api_key:
                raise ConfigurationError("OPENAI_API_KEY must be set to generate drafts.")
            client = OpenAI(api_key=api_key, timeout=config.get_generation_timeout())
        self.client = client
        self.model = model or config.get_generation_model()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=20),
        retry=retry_if_exception_type(
            (APIConnectionError, APITimeoutError, RateLimitError)
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _complete(self, messages: list[dict[str, str]]) -> str | None:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,  # type: ignore[arg-type]
            response_format={"type": "json_object"},
            temperature=config.get_generation_temperature(),
        )
        if not response.choices:
            return None
        return response.choices[0].message.content

    def generate(self, schema: dict[str, Any], prompt: str) -> dict[str, Any] | None:
        messages = [
            {
                "role": "system",
                "content": (
                    "Respond with a single JSON object that validates against this "
                    f"JSON Schema, and nothing else:\n{json.dumps(schema)}"
                ),
            },
            {"role": "user", "content": prompt},
        ]
        try:
            content = self._complete(messages)
        except OpenAIError as e:
            logger.error(f"Generation service call failed: {e}")
            raise GenerationError(f"Generation service call failed: {e}") from e
        if not content:
            return None
        try:
            data = json.loads(_strip_json_fences(content))
        except json.JSONDecodeError as e:
            logger.error(f"Model returned invalid JSON: {e}")
            return None
        return data if isinstance(data, dict) else None


# --- Prompts ---


def _component_lines(components: Sequence[RiggingComponent]) -> list[str]:
    fields = [
        ("length", "Length"),
        ("diameter", "Diameter"),
        ("material", "Material"),
        ("upper_termination", "Upper Termination"),
        ("pin_size_upper", "Pin Size Upper"),
        ("lower_termination", "Lower Termination"),
        ("pin_size_lower", "Pin Size Lower"),
        ("notes", "Notes"),
    ]
    lines = []
    for c in components:
        lines.append(f"- Component ID: {c.get('id', '')}")
        lines.append(f"  Type: {c.get('type', '')}")
        lines.append(f"  Quantity: {c.get('quantity', '')}")
        for key, label in fields:
            if c.get(key):
                lines.append(f"  {label}: {c[key]}")  # type: ignore[literal-required]
    return lines


def _misc_lines(misc: Sequence[MiscHardware]) -> list[str]:
    lines = []
    for m in misc:
        lines.append(f"- Item: {m.get('item', '')}")
        lines.append(f"  Quantity: {m.get('quantity', '')}")
        if m.get("notes"):
            lines.append(f"  Notes: {m['notes']}")
    return lines


def build_hardware_list_prompt(
    project: RigProject,
    components: Sequence[RiggingComponent],
    misc: Sequence[MiscHardware],
) -> str:
    lines = [
        "You are an expert marine rigging specialist tasked with generating a "
        "comprehensive hardware list for a sailing rig replacement project. Analyze "
        "the component data below and output a precise list of all required hardware.",
        "",
        f"Project Name: {project.get('project_name', '')}",
    ]
    if project.get("vessel_name"):
        lines.append(f"Vessel Name: {project['vessel_name']}")
    lines += ["", "Rigging components (sizes may be imperial or metric):"]
    lines += _component_lines(components)
    if misc:
        lines += ["", "Miscellaneous hardware items:"]
        lines += _misc_lines(misc)
    lines += [
        "",
        "Handle mixed units (e.g. metric wire diameter with imperial pin sizes) "
        "appropriately when suggesting replacement parts.",
    ]
    return "\n".join(lines)


def build_email_prompt(
    project_name: str,
    vessel_name: str,
    components: Sequence[RiggingComponent],
    misc: Sequence[MiscHardware],
    pick_list: PickList,
) -> str:
    lines = [
        "Draft a short, professional plain-text email from a rigger to a client "
        "summarising a rigging survey and the parts to be ordered. Unit prices are "
        "quoted separately; do not invent prices.",
        "",
        f"Project: {project_name}",
        f"Vessel: {vessel_name}",
        "",
        "Components:",
    ]
    lines += _component_lines(components)
    if misc:
        lines += ["", "Miscellaneous hardware:"]
        lines += _misc_lines(misc)
    lines += ["", "Pick list:"]
    for w in pick_list["wire"]:
        lines.append(f"- Wire {w['material']} {w['diameter']}: {w['length']:.2f} m")
    for f in pick_list["fittings"]:
        lines.append(
            f"- Fitting {f['type']} (pin {f['pin_size']}, wire {f['diameter']}): x{f['quantity']}"
        )
    for p in pick_list["pins"]:
        lines.append(f"- Clevis pin {p['size']}: x{p['quantity']}")
    return "\n".join(lines)


# --- Operations ---


def generate_hardware_list(
    project: RigProject,
    components: Sequence[RiggingComponent],
    misc: Sequence[MiscHardware],
    service: GenerationService,
) -> dict[str, Any]:
    """
    Asks the generation service for a hardware list with replacement suggestions.

    Photos are stripped from the components before prompting.

    Args:
        project: The survey (name and vessel are used).
        components: Rigging components to analyze.
        misc: Miscellaneous hardware lines.
        service: The generation backend.

    Returns:
        A dict with `hardware_list` (items with `item_name`, `quantity`,
        `specifications`, optional `suggested_replacement_part`, `notes`) and
        an optional `summary`.

    Raises:
        GenerationError: If the service returns nothing, or output that does
            not match the schema.
    """
    stripped = [{k: v for k, v in c.items() if k != "photos"} for c in components]
    prompt = build_hardware_list_prompt(project, stripped, misc)  # type: ignore[arg-type]

    output = service.generate(HardwareListResult.model_json_schema(), prompt)
    if not output:
        raise GenerationError("The generation service returned no hardware list.")

    try:
        result = HardwareListResult.model_validate(output)
    except ValidationError as e:
        logger.error(f"Hardware list failed schema validation: {e}")
        raise GenerationError(f"Hardware list did not match the expected shape: {e}") from e

    logger.info(f"Generated {len(result.hardware_list)} hardware items")
    return result.model_dump()


def draft_rigging_email(
    project_name: str,
    vessel_name: str,
    components: Sequence[RiggingComponent],
    misc: Sequence[MiscHardware],
    pick_list: PickList,
    service: GenerationService,
) -> dict[str, str]:
    """
    Has the model draft a plain-text client email.

    Returns:
        A dict with `subject` and `body`.

    Raises:
        GenerationError: If no valid draft comes back.
    """
    prompt = build_email_prompt(project_name, vessel_name, components, misc, pick_list)
    output = service.generate(EmailDraft.model_json_schema(), prompt)
    if not output:
        raise GenerationError("The generation service returned no email draft.")
    try:
        return EmailDraft.model_validate(output).model_dump()
    except ValidationError as e:
        raise GenerationError(f"Email draft did not match the expected shape: {e}") from e
