"""
ABI fragments for the Pathz contracts this service reads from.
"""


def _param(name, type_, components=None, indexed=None):
    param = {"name": name, "type": type_, "internalType": type_}
    if components is not None:
        param["components"] = components
    if indexed is not None:
        param["indexed"] = indexed
    return param


def _view(name, inputs, outputs, mutability="view"):
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs,
        "stateMutability": mutability,
    }


DECRYPT_KEYS = [_param("key", "string"), _param("iv", "string")]
ENCRYPTION_CIDS = [
    _param("resultAndIncreaseCID", "string"),
    _param("decKeys", "tuple", DECRYPT_KEYS),
]
PATHZ_ID = [_param("id", "uint16"), _param("treePath", "string")]
ALL_VARS = [
    _param("pathStoryNumber", "uint16"),
    _param("pathStoryCID", "string"),
    _param("characterTraitsHistoryCID", "string"),
    _param("encryptionPathStoryCIDs", "tuple", ENCRYPTION_CIDS),
]

PORTAL_ABI = [
    {
        "type": "event",
        "name": "PathzChoosed",
        "anonymous": False,
        "inputs": [
            _param("pathStoryNumber", "uint16", indexed=True),
            _param("letterChoosed", "string", indexed=False),
            _param("pathzID", "uint16", indexed=False),
        ],
    },
    _view(
        "getAllPathStories",
        [_param("_pathzIDs", "uint16[]")],
        [
            _param("", "tuple[]", PATHZ_ID),
            _param("", "uint256"),
            _param("", "bool"),
            _param("", "string"),
            _param("", "tuple[]", ALL_VARS),
        ],
    ),
    _view("characterTraitsHistoriesCIDs", [_param("", "uint16"), _param("", "uint256")], [_param("", "string")]),
    _view("checkPathStoryOfTreePath", [_param("_treePath", "string")], [_param("", "uint256")], "pure"),
    _view("getLastCharacterTraitsHistoryCID", [_param("_pathStoryNumber", "uint16")], [_param("", "string")]),
    _view(
        "getLastEncryptionPathStoryCIDs",
        [_param("_pathStoryNumber", "uint16")],
        [_param("", "tuple", ENCRYPTION_CIDS)],
    ),
    _view("getLastPathStoryCID", [_param("_pathStoryNumber", "uint16")], [_param("", "string")]),
    _view("getOwnerOfPathz", [_param("_pathzID", "uint16")], [_param("", "address")]),
    _view("getTreePathsForPathzIDs", [_param("_pathzIDs", "uint16[]")], [_param("pathzData", "tuple[]", PATHZ_ID)]),
    _view("isValidLetter", [_param("choosedLetter", "string")], [_param("", "bool"), _param("", "string")], "pure"),
    _view("isValidTreePath", [_param("treePath", "string")], [_param("", "bool"), _param("", "string")], "pure"),
    _view("owner", [], [_param("", "address")]),
    _view("pathStoriesCIDs", [_param("", "uint16"), _param("", "uint256")], [_param("", "string")]),
    _view("pathStoryNumber", [], [_param("", "uint16")]),
    _view("pathzNFTContract", [], [_param("", "address")]),
    {
        "type": "function",
        "name": "pathzChoosePath",
        "inputs": [_param("choosedLetter", "string"), _param("_pathzID", "uint16")],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]

MINT_STAGE = [
    _param("totalMintCap", "uint16"),
    _param("maxPerWallet", "uint16"),
    _param("price", "uint256"),
    _param("startTimestamp", "uint256"),
    _param("endTimestamp", "uint256"),
]

NFT_ABI = [
    _view("getMintStage", [_param("timestamp", "uint256")], [_param("stage", "tuple", MINT_STAGE)]),
    _view("totalMinted", [], [_param("", "uint16")]),
    _view("balanceOf", [_param("owner", "address")], [_param("", "uint256")]),
    _view("getTreePathForPathzID", [_param("z", "uint256")], [_param("", "string")]),
    _view("tokenURI", [_param("_id", "uint256")], [_param("", "string")]),
]


def read_only_functions(abi):
    """Names of the view/pure functions in `abi`."""
    return {
        entry["name"]
        for entry in abi
        if entry.get("type") == "function" and entry.get("stateMutability") in ("view", "pure")
    }
