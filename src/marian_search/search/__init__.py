"""
Indexing and ranking core.

- analyzers: Tokenizer and normalization filters
- correlations: Term-to-term relevance weights used for query expansion
- inverted_index: Weighted-field postings and query scoring
- link_analysis: Link graph and HITS authority/hub scores
- query: Query parsing and search scope selection
"""
