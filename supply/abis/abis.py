import json
from pathlib import Path

# Load ABIs from JSON files
def load_abi(filename):
    with open(Path(__file__).parent / filename, 'r') as f:
        return json.load(f)

ERC20_ABI = load_abi('ERC20.json')
MULTICALL3_ABI = load_abi('Multicall3.json')
