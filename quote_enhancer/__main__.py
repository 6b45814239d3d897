import sys

from quote_enhancer.main import main

sys.exit(main())
