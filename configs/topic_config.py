"""
Topic-count selection configuration based on research standards.
References:
- Griffiths, T. L., & Steyvers, M. (2004). Finding scientific topics. Proceedings of the National Academy of Sciences, 101(suppl 1), 5228-5235. 10.1073/pnas.0307752101
- Cao, J., Xia, T., Li, J., Zhang, Y., & Tang, S. (2009). A density-based method for adaptive LDA model selection. Neurocomputing, 72(7-9), 1775-1781. 10.1016/j.neucom.2008.06.011
- Arun, R., Suresh, V., Veni Madhavan, C. E., & Narasimha Murthy, M. N. (2010). On Finding the Natural Number of Topics with Latent Dirichlet Allocation: Some Observations. PAKDD 2010, 391-402. 10.1007/978-3-642-13657-3_43
- Deveaud, R., SanJuan, E., & Bellot, P. (2014). Accurate and effective latent concept modeling for ad hoc information retrieval. Document numérique, 17(1), 61-84. 10.3166/dn.17.1.61-84
- Mimno, D., Wallach, H., Talley, E., Leenders, M., & McCallum, A. (2011). Optimizing Semantic Coherence in Topic Models. EMNLP 2011, 262-272.
"""

TOPIC_CONFIG = {
    'coherence_measure': 'u_mass',  # Following Mimno et al. (2011)
    'metrics': {
        'griffiths_2004': 'maximize',
        'cao_juan_2009': 'minimize',
        'arun_2010': 'minimize',
        'deveaud_2014': 'maximize'
    },
    'coherence_thresholds': {  # u_mass is <= 0, closer to zero is better
        'good': -2.0,
        'acceptable': -5.0,
        'poor': float('-inf')
    }
}
