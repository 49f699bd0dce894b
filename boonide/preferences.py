"""User preferences and interaction learning."""

import logging
from collections import Counter, deque
from typing import Any, Deque, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .agents.catalog import DEFAULT_AGENT_PRIORITIES
from .errors import InvalidConfig
from .modes.config import SpecCentricConfig, VibeCodingConfig, normalize_option_keys
from .types import Mode, UserInteraction

logger = logging.getLogger(__name__)

MAX_INTERACTIONS = 500
MIN_INTERACTIONS_FOR_LEARNING = 5


class UserPreferences(BaseModel):
    """Declared and learned user preferences.

    Attributes:
        preferred_mode: Mode the user works in most successfully
        vibecoding_prefs: Per-mode overrides for Vibecoding
        spec_centric_prefs: Per-mode overrides for SpecCentric
        agent_priorities: Agent id -> weight, used only to break scheduling ties
        custom_prompts: User prompt templates
        learning_enabled: Whether interactions are recorded
    """

    preferred_mode: Mode = Field(default=Mode.VIBECODING, alias="preferredMode")
    vibecoding_prefs: VibeCodingConfig = Field(default_factory=VibeCodingConfig, alias="vibeCodingPrefs")
    spec_centric_prefs: SpecCentricConfig = Field(
        default_factory=SpecCentricConfig, alias="specCentricPrefs"
    )
    agent_priorities: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_AGENT_PRIORITIES), alias="agentPriorities"
    )
    custom_prompts: List[str] = Field(default_factory=list, alias="customPrompts")
    learning_enabled: bool = Field(default=True, alias="learningEnabled")

    class Config:
        populate_by_name = True
        extra = "forbid"


_NESTED = {"vibeCodingPrefs": VibeCodingConfig, "specCentricPrefs": SpecCentricConfig}


class PreferenceStore:
    """Holds user preferences and consumes interaction records.

    While learning is enabled every recorded interaction is kept in a
    bounded buffer. Once enough interactions exist, the preferred mode is
    derived as the mode with the most successful interactions.
    """

    def __init__(
        self,
        preferences: Optional[UserPreferences] = None,
        max_interactions: int = MAX_INTERACTIONS,
        min_interactions: int = MIN_INTERACTIONS_FOR_LEARNING,
    ):
        self._preferences = (
            preferences.model_copy(deep=True) if preferences is not None else UserPreferences()
        )
        self._interactions: Deque[UserInteraction] = deque(maxlen=max_interactions)
        self.min_interactions = min_interactions

    @property
    def learning_enabled(self) -> bool:
        return self._preferences.learning_enabled

    def get(self) -> UserPreferences:
        """Get a snapshot of the current preferences."""
        return self._preferences.model_copy(deep=True)

    def interactions(self) -> List[UserInteraction]:
        """Get the recorded interactions, oldest first."""
        return list(self._interactions)

    def record(self, interaction: UserInteraction) -> None:
        """
        Record a user interaction.

        Does nothing when learning is disabled.
        """
        if not self._preferences.learning_enabled:
            return

        self._interactions.append(interaction)
        logger.debug(
            f"Recorded interaction '{interaction.action}' in {interaction.mode.value} "
            f"(success={interaction.success})"
        )
        self._derive()

    def _derive(self) -> None:
        if len(self._interactions) < self.min_interactions:
            return

        successes = Counter(i.mode for i in self._interactions if i.success)
        if not successes:
            return

        ranked = successes.most_common()
        best_mode, best_count = ranked[0]
        if len(ranked) > 1 and ranked[1][1] == best_count:
            return

        if best_mode != self._preferences.preferred_mode:
            logger.info(
                f"Learned preferred mode {best_mode.value} "
                f"from {len(self._interactions)} interactions"
            )
            self._preferences.preferred_mode = best_mode

    async def update(self, partial: Union[UserPreferences, Dict[str, Any]]) -> UserPreferences:
        """
        Merge fields into the preferences.

        Args:
            partial: Mapping of preference fields (camelCase or snake_case)

        Returns:
            Snapshot of the updated preferences

        Raises:
            InvalidConfig: If the input is not well-typed; preferences are unchanged
        """
        if isinstance(partial, UserPreferences):
            partial = partial.model_dump(by_alias=True)
        if not isinstance(partial, dict):
            raise InvalidConfig(f"Preference update must be a mapping, got {type(partial).__name__}")

        aliases = {
            name: info.alias or name for name, info in UserPreferences.model_fields.items()
        }
        data = self._preferences.model_dump(by_alias=True)
        for key, value in partial.items():
            alias = aliases.get(key, key)
            if alias not in data:
                raise InvalidConfig(f"Unknown preference '{key}'")
            if alias in _NESTED and isinstance(value, dict):
                data[alias] = {**data[alias], **normalize_option_keys(_NESTED[alias], value)}
            else:
                data[alias] = value

        try:
            self._preferences = UserPreferences.model_validate(data)
        except ValidationError as e:
            raise InvalidConfig(f"Invalid preferences: {e}", e.errors()) from e

        if not self._preferences.learning_enabled:
            self._interactions.clear()

        return self.get()

    def agent_weight(self, agent_ids: List[str]) -> float:
        """Sum of the priority weights of a set of agents."""
        priorities = self._preferences.agent_priorities
        return sum(priorities.get(agent_id, 0) for agent_id in agent_ids)
