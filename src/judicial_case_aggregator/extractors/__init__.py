from .party_extractor import Parties, extract_labeled_segments, extract_parties
