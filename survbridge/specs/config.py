"""Model specifications: what to fit, independent of how an engine fits it."""

import json
import logging
import numbers
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..engines.lifelines_engines import DISTRIBUTIONS
from ..errors import ConfigurationError
from .registry import (
    BOOST_TREE,
    DECISION_TREE,
    DEFAULT_ENGINES,
    MODEL_ARGS,
    PROPORTIONAL_HAZARDS,
    RAND_FOREST,
    SURVIVAL_REG,
    EngineInfo,
    get_engine,
)
from .types import Mode

logger = logging.getLogger(__name__)


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _check_penalty(value) -> None:
    values = value if isinstance(value, (list, tuple)) else [value]
    if not values or not all(_is_number(v) and v >= 0 for v in values):
        raise ConfigurationError(f"penalty must be a non-negative number or list of numbers, got {value!r}")


def _check_fraction(name: str, low_open: bool):
    def check(value) -> None:
        ok = _is_number(value) and value <= 1 and (value > 0 if low_open else value >= 0)
        if not ok:
            bounds = "(0, 1]" if low_open else "[0, 1]"
            raise ConfigurationError(f"{name} must be in {bounds}, got {value!r}")
    return check


def _check_count(name: str):
    def check(value) -> None:
        if not (isinstance(value, numbers.Integral) and not isinstance(value, bool) and value >= 1):
            raise ConfigurationError(f"{name} must be an integer >= 1, got {value!r}")
    return check


def _check_learn_rate(value) -> None:
    if not (_is_number(value) and value > 0):
        raise ConfigurationError(f"learn_rate must be > 0, got {value!r}")


def _check_dist(value) -> None:
    if value not in DISTRIBUTIONS:
        raise ConfigurationError(
            f"dist must be one of ({', '.join(DISTRIBUTIONS)}), got {value!r}"
        )


_ARG_CHECKS = {
    "penalty": _check_penalty,
    "mixture": _check_fraction("mixture", low_open=False),
    "sample_size": _check_fraction("sample_size", low_open=True),
    "mtry": _check_count("mtry"),
    "trees": _check_count("trees"),
    "min_n": _check_count("min_n"),
    "tree_depth": _check_count("tree_depth"),
    "learn_rate": _check_learn_rate,
    "dist": _check_dist,
}


@dataclass
class TranslatedSpec:
    """A specification resolved against its engine.

    Attributes:
        spec: The source specification.
        info: Registry row for the (model, engine) pair.
        fit_args: Keyword arguments for the engine adapter.
        predict_args: Main arguments applied when predicting.
    """

    spec: "ModelSpec"
    info: EngineInfo
    fit_args: Dict[str, Any]
    predict_args: Dict[str, Any]

    def build_engine(self):
        """Instantiate the (unfitted) engine adapter."""
        return self.info.engine_class(**self.fit_args)


@dataclass
class ModelSpec:
    """Specification of a censored-regression model.

    Modifiers return copies, so specifications can be shared and chained::

        spec = proportional_hazards(penalty=0.1).set_engine("sksurv")

    Attributes:
        model: Model name (``proportional_hazards``, ``survival_reg``, ...).
        args: Main arguments that were set; unset arguments use engine
            defaults.
        engine: Engine name.
        mode: Modeling mode; only ``"censored regression"`` exists.
        engine_args: Extra keyword arguments passed straight to the engine.
    """

    model: str
    args: Dict[str, Any] = field(default_factory=dict)
    engine: Optional[str] = None
    mode: str = Mode.CENSORED_REGRESSION.value
    engine_args: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Fill the default engine, drop unset arguments and validate."""
        if self.engine is None and self.model in DEFAULT_ENGINES:
            self.engine = DEFAULT_ENGINES[self.model]
        self.args = {k: v for k, v in self.args.items() if v is not None}
        self.validate()

    def validate(self) -> None:
        """Validate the specification.

        Raises:
            ConfigurationError: If the model, mode, engine or any main
                argument is invalid.
        """
        if self.model not in MODEL_ARGS:
            raise ConfigurationError(
                f"Unknown model '{self.model}'. Available models are: {', '.join(MODEL_ARGS)}"
            )

        modes = [mode.value for mode in Mode]
        if self.mode not in modes:
            raise ConfigurationError(
                f"'{self.mode}' is not a known mode for model `{self.model}`. "
                f"Available modes are: {', '.join(modes)}"
            )

        unknown = sorted(set(self.args) - set(MODEL_ARGS[self.model]))
        if unknown:
            raise ConfigurationError(
                f"Unknown arguments for {self.model}: {unknown}. "
                f"Available: {list(MODEL_ARGS[self.model])}"
            )

        for name, value in self.args.items():
            _ARG_CHECKS[name](value)

        get_engine(self.model, self.engine)

    def set_engine(self, engine: str, **engine_args) -> "ModelSpec":
        """Return a copy using another engine.

        Args:
            engine: Engine name.
            **engine_args: Engine-specific keyword arguments.
        """
        return replace(self, engine=engine, engine_args=dict(engine_args))

    def set_mode(self, mode: str) -> "ModelSpec":
        """Return a copy with another mode."""
        return replace(self, mode=mode)

    def update(self, **args) -> "ModelSpec":
        """Return a copy with main arguments replaced.

        Arguments passed as None keep their current value.
        """
        merged = dict(self.args)
        merged.update({k: v for k, v in args.items() if v is not None})
        return replace(self, args=merged)

    def translate(self) -> TranslatedSpec:
        """Resolve main arguments into engine arguments.

        Raises:
            ConfigurationError: If a required argument is missing or an
                argument is not a single value.
        """
        info = get_engine(self.model, self.engine)

        for name in info.required_args:
            if name not in self.args:
                raise ConfigurationError(
                    f"For the {self.engine} engine, `{name}` must be a single number."
                )

        fit_args = dict(info.defaults)
        predict_args = {}
        for name, value in self.args.items():
            if isinstance(value, (list, tuple)):
                raise ConfigurationError(
                    f"For the {self.engine} engine, `{name}` must be a single number "
                    f"(use multi_predict to predict at several values)."
                )
            if name in info.predict_args:
                predict_args[name] = value
            elif name in info.arg_map:
                fit_args[info.arg_map[name]] = value
            else:
                logger.warning(
                    "Argument `%s` is not used by the %s engine for %s", name, self.engine, self.model
                )
        fit_args.update(self.engine_args)

        logger.debug("Translated %s/%s: fit=%s predict=%s", self.model, self.engine, fit_args, predict_args)
        return TranslatedSpec(spec=self, info=info, fit_args=fit_args, predict_args=predict_args)

    def fit(self, formula, data):
        """Fit the specification; see :func:`survbridge.fitting.fit`."""
        from ..fitting.model_fit import fit

        return fit(self, formula, data)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "model": self.model,
            "args": dict(self.args),
            "engine": self.engine,
            "mode": self.mode,
            "engine_args": dict(self.engine_args),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ModelSpec":
        """Create from dictionary.

        Args:
            data: Dictionary with ``model`` and optionally ``args``,
                ``engine``, ``mode`` and ``engine_args``.

        Returns:
            ModelSpec instance.
        """
        if "model" not in data:
            raise ConfigurationError("A model specification needs a `model` entry")
        return cls(
            model=data["model"],
            args=dict(data.get("args", {})),
            engine=data.get("engine"),
            mode=data.get("mode", Mode.CENSORED_REGRESSION.value),
            engine_args=dict(data.get("engine_args", {})),
        )

    def to_json(self, path: Union[str, Path]) -> None:
        """Save specification to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "ModelSpec":
        """Load a specification from a JSON file."""
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))

    def __str__(self) -> str:
        lines = [f"{self.model} model specification ({self.mode})", ""]
        if self.args:
            lines.append("Main arguments:")
            lines.extend(f"  {name} = {value}" for name, value in self.args.items())
        if self.engine_args:
            lines.append("Engine-specific arguments:")
            lines.extend(f"  {name} = {value}" for name, value in self.engine_args.items())
        lines.append(f"Computational engine: {self.engine}")
        return "\n".join(lines)


def proportional_hazards(
    penalty: Union[float, list, None] = None,
    mixture: Optional[float] = None,
    engine: Optional[str] = None,
    mode: str = Mode.CENSORED_REGRESSION.value,
) -> ModelSpec:
    """Cox proportional hazards regression.

    Args:
        penalty: Total regularization amount.
        mixture: Proportion of lasso penalty (1 = lasso, 0 = ridge).
        engine: ``lifelines`` (default) or ``sksurv`` (penalty path).
        mode: Modeling mode.
    """
    return ModelSpec(
        model=PROPORTIONAL_HAZARDS,
        args={"penalty": penalty, "mixture": mixture},
        engine=engine,
        mode=mode,
    )


def survival_reg(
    dist: Optional[str] = None,
    engine: Optional[str] = None,
    mode: str = Mode.CENSORED_REGRESSION.value,
) -> ModelSpec:
    """Parametric (accelerated failure time) survival regression."""
    return ModelSpec(model=SURVIVAL_REG, args={"dist": dist}, engine=engine, mode=mode)


def rand_forest(
    mtry: Optional[int] = None,
    trees: Optional[int] = None,
    min_n: Optional[int] = None,
    engine: Optional[str] = None,
    mode: str = Mode.CENSORED_REGRESSION.value,
) -> ModelSpec:
    """Random survival forest."""
    return ModelSpec(
        model=RAND_FOREST,
        args={"mtry": mtry, "trees": trees, "min_n": min_n},
        engine=engine,
        mode=mode,
    )


def boost_tree(
    mtry: Optional[int] = None,
    trees: Optional[int] = None,
    min_n: Optional[int] = None,
    tree_depth: Optional[int] = None,
    learn_rate: Optional[float] = None,
    sample_size: Optional[float] = None,
    engine: Optional[str] = None,
    mode: str = Mode.CENSORED_REGRESSION.value,
) -> ModelSpec:
    """Gradient-boosted survival trees."""
    return ModelSpec(
        model=BOOST_TREE,
        args={
            "mtry": mtry,
            "trees": trees,
            "min_n": min_n,
            "tree_depth": tree_depth,
            "learn_rate": learn_rate,
            "sample_size": sample_size,
        },
        engine=engine,
        mode=mode,
    )


def decision_tree(
    tree_depth: Optional[int] = None,
    min_n: Optional[int] = None,
    engine: Optional[str] = None,
    mode: str = Mode.CENSORED_REGRESSION.value,
) -> ModelSpec:
    """Single survival tree."""
    return ModelSpec(
        model=DECISION_TREE,
        args={"tree_depth": tree_depth, "min_n": min_n},
        engine=engine,
        mode=mode,
    )
