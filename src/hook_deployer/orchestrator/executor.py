"""Pipeline executor: runs a deployment's hooks in order."""

from __future__ import annotations

import logging
from typing import Optional

from ..config import AppConfig
from ..deployment import Deployment
from ..transport import Transports
from .hook_executor import HookExecutor
from .models import PipelineResult

logger = logging.getLogger(__name__)


class PipelineExecutor:
    """
    部署流水线执行器

    按添加顺序执行 Deployment 中的每个 Hook。
    Hook 失败且未设置 ignore_failure 时立即中止，不再执行后续 Hook。
    """

    def __init__(
        self,
        transports: Optional[Transports] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self.config = config or AppConfig()
        # 外部传入的 transports 由调用方负责关闭
        self._owns_transports = transports is None
        self.transports = transports or Transports.from_config(self.config)
        self.hook_executor = HookExecutor(self.transports)

    def run(self, deployment: Deployment) -> PipelineResult:
        """
        执行部署流水线

        Args:
            deployment: 已添加好 hooks 的部署

        Returns:
            PipelineResult: 每个已执行 Hook 的结果
        """
        hooks = list(deployment.hooks)
        result = PipelineResult(deployment_name=deployment.name, total_hooks=len(hooks))

        logger.info("=" * 60)
        logger.info(f"🚀 DEPLOYING {deployment.name} {deployment.vsn} ({deployment.env})")
        logger.info(f"Total Hooks: {len(hooks)}")
        logger.info("=" * 60)

        try:
            for i, hook in enumerate(hooks):
                label = hook.name or f"hook-{i + 1}"
                logger.info(f"📍 Hook {i + 1}/{len(hooks)}: {label}")

                hook_result = self.hook_executor.execute(hook, index=i)
                result.hook_results.append(hook_result)

                if hook_result.main_ok:
                    logger.info(f"   ✅ {label} succeeded")
                    continue

                if hook_result.ignored:
                    logger.warning(
                        f"   ⏭️ {label} failed, ignoring and continuing:\n{hook_result.failure.describe()}"
                    )
                    continue

                logger.error(f"   ❌ {label} failed, aborting deployment:\n{hook_result.failure.describe()}")
                result.aborted = True
                break
        finally:
            if self._owns_transports:
                self.transports.close()

        logger.info("=" * 60)
        if result.success:
            logger.info("🎉 Deployment completed successfully!")
        else:
            logger.error(f"💥 Deployment failed ({result.skipped_hooks} hooks not run)")
        logger.info("=" * 60)
        return result
