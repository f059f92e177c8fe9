"""Run the installer from a source checkout: `sudo -E python main.py`.

Same as the `falcon-linux-install` console script, without `pip install`.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from falcon_installer.__main__ import main  # noqa: E402

if __name__ == "__main__":
    main()
