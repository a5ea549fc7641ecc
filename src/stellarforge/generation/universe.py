import json
import logging
from pathlib import Path

from tqdm import tqdm

from stellarforge.base.universe import Universe
from stellarforge.generation.factory import SystemFactory

logger = logging.getLogger(__name__)

# universe_params keys handed to the SystemFactory
FACTORY_PARAMS = (
    "test_mode",
    "seed",
    "data_path",
    "epoch",
    "topology",
    "max_stars",
    "stability_factor",
    "strict_solver",
)


def create_universe(universe_params):
    """
    Generate a universe of stellar systems

    Args:
        universe_params (dict):
            "nsystems" (number of systems, 1 by default), "star_count" (0 for
            random sizes) and any SystemFactory keyword. A "script" entry
            names a JSON file whose content is read first, explicit entries
            take precedence over it.

    Returns:
        universe (GeneratedUniverse)
    """
    params = dict(universe_params)
    if "script" in params:
        script_path = Path(params.pop("script"))
        with open(script_path) as f:
            specs = json.loads(f.read())
        params = {**specs, **params}
    if params.get("seed") is None:
        logger.info("No seed given, the universe will not be reproducible")
    return GeneratedUniverse(params)


class GeneratedUniverse(Universe):
    """
    Class for a universe of generated systems
    """

    def __init__(self, params):
        self.type = "Generated"
        self.params = params
        self.factory = SystemFactory(
            **{key: params[key] for key in FACTORY_PARAMS if key in params}
        )
        nsystems = params.get("nsystems", 1)
        star_count = params.get("star_count", 0)

        self.systems = []
        for _ in tqdm(
            range(nsystems), desc="Generating systems", position=0, leave=False
        ):
            self.systems.append(self.factory.generate_system(star_count))

        super().__init__()
