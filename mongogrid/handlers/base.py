from ..exc import InvalidQueryError


class MongoPipelineHandlerBase:
    """ An implementation of a handler from MongoPipeline

        Every subclass will handle a single field from the Query object,
        and contribute zero or more stages to the aggregation pipeline.
    """

    #: Name of the QueryObject section that this object is capable of handling
    query_object_section_name = None

    def __init__(self):
        """ Initialize the Query Object section handler.

        This method does *not* receive any input data just yet, with the purpose of having an
        object that can be extended with some interesting defaults right at init time.

        NOTE: Any arguments that have default values will be treated as handler settings!!
        """
        # Has the input() method been called already?
        self.input_received = False

        #: The raw input value
        self.input_value = None

        #: MongoPipeline bound to this object. It may remain uninitialized.
        self.mongopipeline = None

    def with_mongopipeline(self, mongopipeline):
        """ Bind this object with a MongoPipeline

            :type mongopipeline: mongogrid.query.MongoPipeline
            """
        self.mongopipeline = mongopipeline
        return self

    def __copy__(self):
        """ A handler may be reused in its state before input() is called: copy() it

        MongoPipeline.__copy__() copies every handler this way.
        """
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update(self.__dict__)
        return result

    def input_prepare_query_object(self, query_object):
        """ Modify the Query Object before it is processed.

        Sometimes a handler would need to alter it.
        Here's its chance.

        This method is called before any input(), or validation, or anything.

        :param query_object: dict
        """
        return query_object

    def input(self, qo_value):
        """ Get a section of the Query object.

        The purpose of this method is to receive the input, validate it, and store as a public
        property so that external tools may export its value.
        Everything that can fail must fail here: once a pipeline is compiled, it is sent to the store.

        :param qo_value: the value of the Query object field it's handling
        :rtype: MongoPipelineHandlerBase
        :raises InvalidQueryError
        """
        self.input_value = qo_value  # no copying. Try not to modify it.

        # Set the flag
        self.input_received = True

        # Make sure that input() can only be used once
        self.input = self.__raise_input_not_reusable

        return self

    def is_input_empty(self):
        """ Test whether the input value was empty """
        return not self.input_value

    def __raise_input_not_reusable(self, *args, **kwargs):
        raise RuntimeError("You can't use the {}.input() method twice. "
                           "copy() it before the first input() instead!"
                           .format(self.__class__.__name__))

    def _raise_invalid_type(self, value, expected: str):
        raise InvalidQueryError('{name} must be {expected}; {type} provided.'
                                .format(name=self.query_object_section_name,
                                        expected=expected,
                                        type=type(value).__name__))

    # These methods implement the logic of individual handlers
    # Note that not all methods are going to be implemented by subclasses!

    def compile_statement(self):
        """ Compile a statement

        :return: MongoDB document
        """
        raise NotImplementedError()

    def compile_statements(self):
        """ Compile a list of statements: e.g. the stages of a $facet branch

        :return: list of MongoDB documents
        """
        raise NotImplementedError()

    def compile_stages(self):
        """ Compile the pipeline stages this handler contributes

        :return: list of pipeline stages; empty when the handler has nothing to do
        :rtype: list[dict]
        """
        raise NotImplementedError()

    def get_final_input_value(self):
        """ Get the final input of the handler """
        return self.input_value
