# run.py
# Entry point. Config and wiring only. No logic lives here.
#
# Registers the sample tools with the process-wide host context and opens the
# dev console. Set TOOLHOST_INTERACTIVE=false to auto-answer tool prompts.

import asyncio

from toolhost.config import configure_logging
from toolhost.devtools import enable_dev_mode
from toolhost.host import get_host_context
from toolhost.tools import TOOLS


def main() -> None:
    context = get_host_context()
    configure_logging(context.settings.log_level)

    for tool in TOOLS:
        tool.register(context)

    asyncio.run(enable_dev_mode(context).run())


if __name__ == "__main__":
    main()
