import logging
import sys


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(verbosity: int = 0, *, stream=None) -> None:  # noqa: ANN001
    level = logging.INFO
    if verbosity >= 1:
        level = logging.DEBUG

    # 최종 리포트(click.echo)는 stdout 으로 나가므로 로그는 stderr 로 분리한다.
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=stream if stream is not None else sys.stderr,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
