import sys

from chat_core.api.service import main


if __name__ == "__main__":
    sys.exit(main())
