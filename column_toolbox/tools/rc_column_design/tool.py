from __future__ import annotations

import traceback
from typing import Any, Dict

from loguru import logger
from pydantic import ValidationError

from column_toolbox.blocks import check_inputs
from column_toolbox.core.settings import load_settings
from column_toolbox.core.tool_base import ToolMeta

from .exports import export_all
from .logging_utils import get_run_logger, remove_run_logger_sink
from .models import MODULE_HINTS, MODULE_INPUTS, SolveRequest
from .paths import TOOL_ID, compute_input_hash, create_run_dir
from .solver import TOOL_VERSION, solve


class RCColumnDesignTool:
    """RC column design tool.

    - run_batch() validates, pre-checks, calculates, traces and exports one module.
    - run() is the host entry point; this tool has no window, so it runs headless.
    """

    meta = ToolMeta(
        id=TOOL_ID,
        name="RC Column Design",
        category="Concrete",
        version=TOOL_VERSION,
        description="Axial, eccentric, reinforcement, spiral and tied column checks with calc package exports.",
    )

    InputModel = SolveRequest

    def default_inputs(self) -> dict:
        return self.InputModel(module="axial_load", inputs=MODULE_INPUTS["axial_load"]().model_dump()).model_dump()

    def module_defaults(self) -> Dict[str, Dict[str, Any]]:
        return {m: cls().model_dump() for m, cls in MODULE_INPUTS.items()}

    # ------------------------------
    # Batch calculation API (headless)
    # ------------------------------
    def run_batch(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """Run the full calculation + exports and return results.

        Safe to execute in a background thread.
        """
        try:
            req = self.InputModel.model_validate(inputs)
            model = MODULE_INPUTS[req.module].model_validate(req.inputs)
        except ValidationError as e:
            logger.warning(f"Rejected {self.meta.id} request: {e}")
            return {"ok": False, "error": "Validation error", "details": str(e)}

        inputs_norm = model.model_dump()
        problems = check_inputs(req.module, inputs_norm)
        if problems:
            logger.warning(f"Input pre-check failed for {req.module}: {problems}")
            return {"ok": False, "module": req.module, "error": "Invalid inputs", "errors": problems}

        settings = load_settings()
        decimals = settings["display_decimals"]

        input_hash = compute_input_hash({"module": req.module, **inputs_norm})
        run_dir = create_run_dir(self.meta.id, input_hash)
        log, _log_sink = get_run_logger(run_dir, self.meta.id, input_hash)

        try:
            log.info(f"Starting {req.module} batch run")
            log.info(f"Inputs (validated): {inputs_norm}")

            results, trace = solve(req.module, inputs_norm, tool_id=self.meta.id, decimals=decimals)
            for w in results["warnings"]:
                log.warning(w)

            exported = export_all(trace, results, run_dir, decimals=decimals)
            results["run_dir"] = exported["run_dir"]
            results["files"] = exported["files"]
            if settings["show_hints"]:
                results["hint"] = MODULE_HINTS[req.module]

            log.info(f"Batch run complete: {results['status']}")
            return results
        except Exception as e:
            log.exception("Batch run failed")
            return {
                "ok": False,
                "module": req.module,
                "run_dir": str(run_dir),
                "input_hash": input_hash,
                "error": str(e),
                "traceback": traceback.format_exc(),
            }
        finally:
            remove_run_logger_sink(_log_sink)

    # ------------------------------
    # Host entry point
    # ------------------------------
    def run(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        if not inputs:
            inputs = self.default_inputs()
        return self.run_batch(inputs)


TOOL = RCColumnDesignTool()
