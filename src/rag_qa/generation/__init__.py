"""
Generation — prompt construction and the question-answering pipeline.
"""
