from .dataset import EncodedArrayDataset as EncodedArrayDataset
from .dataset import PairEncodingDataset as PairEncodingDataset
from .dataset import collate_encodings as collate_encodings
