import logging
import os
import sys


class PRISM:
    """This class holds the process-wide defaults used by the plugin and the actions
    Every option can also be set with an environment variable of the same name, cfr. `config.get_config`

    :param ROOT: path prefix that all actions are published under
    :param SECURE: require a security backend before the plugin may start serving
    :param LOGLEVEL: loglevel configuration variable, values from logging module (0: trace, .. 50: critical)
    """

    # Configuration settings are stored as class variables
    ROOT = "/"
    SECURE = True
    PAGE_SIZE = 20
    # relationship chains longer than this are not joined (cyclic resource graphs)
    MAX_RELATIONSHIP_DEPTH = 4
    JOIN_MARKER = "__"
    JWT_ALGORITHM = "HS256"
    LOGLEVEL = logging.WARNING

    @staticmethod
    def init_logging(loglevel: int = logging.WARNING) -> logging.Logger:
        """
        Specify the log format used in the webserver logs
        The webserver will catch stdout so we redirect eveything to sys.stderr
        """
        log = logging.getLogger("prism")
        if log.level == logging.NOTSET:
            handler = logging.StreamHandler(sys.stderr)
            formatter = logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s")
            handler.setFormatter(formatter)
            log.setLevel(loglevel)
            log.addHandler(handler)
        return log


#
# logging initialization
#
try:
    DEBUG = os.getenv("DEBUG", logging.WARNING)
    LOGLEVEL = int(DEBUG)
except ValueError:  # pragma: no cover
    print(f'Invalid LogLevel in DEBUG Environment Variable! "{DEBUG}"')
    LOGLEVEL = logging.INFO

log = PRISM.init_logging(LOGLEVEL)
